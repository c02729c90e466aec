from typing import Dict, Iterable, List, Optional

from codejudge.config import logger
from codejudge.data.schemas.problem import Assessment, CodingProblem
from codejudge.errors import ResourceNotFoundException

# Create a module-specific logger
catalog_logger = logger.getChild("catalog")


SEED_PROBLEMS = [
    {
        "id": 1,
        "title": "Two Sum",
        "description": (
            "Given an array of integers `nums` and an integer `target`, return "
            "indices of the two numbers such that they add up to `target`.\n\n"
            "You may assume that each input would have exactly one solution, and "
            "you may not use the same element twice.\n\n"
            "You can return the answer in any order."
        ),
        "difficulty": "Easy",
        "tags": ["Array", "Hash Table"],
        "function_name": "twoSum",
        "test_cases": [
            {
                "id": 1,
                "input": [
                    {"name": "nums", "value": [2, 7, 11, 15]},
                    {"name": "target", "value": 9},
                ],
                "expected_output": [0, 1],
                "explanation": "Because nums[0] + nums[1] == 9, we return [0, 1].",
            },
            {
                "id": 2,
                "input": [
                    {"name": "nums", "value": [3, 2, 4]},
                    {"name": "target", "value": 6},
                ],
                "expected_output": [1, 2],
                "explanation": "Because nums[1] + nums[2] == 6, we return [1, 2].",
            },
            {
                "id": 3,
                "input": [
                    {"name": "nums", "value": [3, 3]},
                    {"name": "target", "value": 6},
                ],
                "expected_output": [0, 1],
                "explanation": "Because nums[0] + nums[1] == 6, we return [0, 1].",
            },
            {
                "id": 4,
                "input": [
                    {"name": "nums", "value": [1, 5, 3, 7]},
                    {"name": "target", "value": 12},
                ],
                "expected_output": [1, 3],
                "hidden": True,
            },
        ],
        "boilerplate_code": {
            "python": (
                "def twoSum(nums, target):\n"
                '    """\n'
                "    :type nums: List[int]\n"
                "    :type target: int\n"
                "    :rtype: List[int]\n"
                '    """\n'
                "    # Your code here\n"
                "    "
            ),
            "javascript": (
                "/**\n"
                " * @param {number[]} nums\n"
                " * @param {number} target\n"
                " * @return {number[]}\n"
                " */\n"
                "var twoSum = function(nums, target) {\n"
                "    // Your code here\n"
                "    \n"
                "};"
            ),
            "java": (
                "class Solution {\n"
                "    public int[] twoSum(int[] nums, int target) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "}"
            ),
            "cpp": (
                "#include <vector>\n\n"
                "class Solution {\n"
                "public:\n"
                "    std::vector<int> twoSum(std::vector<int>& nums, int target) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "};"
            ),
        },
        "solution_code": {
            "python": (
                "def twoSum(nums, target):\n"
                "    seen = {}\n"
                "    for i, value in enumerate(nums):\n"
                "        remaining = target - value\n"
                "        if remaining in seen:\n"
                "            return [seen[remaining], i]\n"
                "        seen[value] = i\n"
                "    return []\n"
            ),
            "javascript": (
                "var twoSum = function(nums, target) {\n"
                "    const seen = {};\n"
                "    for (let i = 0; i < nums.length; i++) {\n"
                "        const remaining = target - nums[i];\n"
                "        if (remaining in seen) {\n"
                "            return [seen[remaining], i];\n"
                "        }\n"
                "        seen[nums[i]] = i;\n"
                "    }\n"
                "    return [];\n"
                "};\n"
            ),
            "java": (
                "class Solution {\n"
                "    public int[] twoSum(int[] nums, int target) {\n"
                "        Map<Integer, Integer> map = new HashMap<>();\n"
                "        for (int i = 0; i < nums.length; i++) {\n"
                "            int complement = target - nums[i];\n"
                "            if (map.containsKey(complement)) {\n"
                "                return new int[] { map.get(complement), i };\n"
                "            }\n"
                "            map.put(nums[i], i);\n"
                "        }\n"
                "        return new int[0];\n"
                "    }\n"
                "}\n"
            ),
            "cpp": (
                "#include <vector>\n"
                "#include <unordered_map>\n\n"
                "class Solution {\n"
                "public:\n"
                "    std::vector<int> twoSum(std::vector<int>& nums, int target) {\n"
                "        std::unordered_map<int, int> seen;\n"
                "        for (int i = 0; i < (int) nums.size(); i++) {\n"
                "            int complement = target - nums[i];\n"
                "            if (seen.count(complement)) {\n"
                "                return {seen[complement], i};\n"
                "            }\n"
                "            seen[nums[i]] = i;\n"
                "        }\n"
                "        return {};\n"
                "    }\n"
                "};\n"
            ),
        },
    },
    {
        "id": 2,
        "title": "Valid Palindrome",
        "description": (
            "A phrase is a palindrome if, after converting all uppercase letters "
            "into lowercase letters and removing all non-alphanumeric characters, "
            "it reads the same forward and backward. Alphanumeric characters "
            "include letters and numbers.\n\n"
            "Given a string s, return true if it is a palindrome, or false otherwise."
        ),
        "difficulty": "Easy",
        "tags": ["String", "Two Pointers"],
        "function_name": "isPalindrome",
        "test_cases": [
            {
                "id": 1,
                "input": [{"name": "s", "value": "A man, a plan, a canal: Panama"}],
                "expected_output": True,
                "explanation": "'amanaplanacanalpanama' is a palindrome.",
            },
            {
                "id": 2,
                "input": [{"name": "s", "value": "race a car"}],
                "expected_output": False,
                "explanation": "'raceacar' is not a palindrome.",
            },
            {
                "id": 3,
                "input": [{"name": "s", "value": " "}],
                "expected_output": True,
                "explanation": "The filtered string is empty, which is a palindrome.",
            },
        ],
        "boilerplate_code": {
            "python": "def isPalindrome(s):\n    # Your code here\n    ",
            "javascript": "var isPalindrome = function(s) {\n    // Your code here\n    \n};",
            "java": (
                "class Solution {\n"
                "    public boolean isPalindrome(String s) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "}"
            ),
            "cpp": (
                "class Solution {\n"
                "public:\n"
                "    bool isPalindrome(string s) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "};"
            ),
        },
        "solution_code": {
            "python": (
                "def isPalindrome(s):\n"
                "    s = ''.join(c for c in s.lower() if c.isalnum())\n"
                "    return s == s[::-1]\n"
            ),
            "javascript": (
                "var isPalindrome = function(s) {\n"
                "    s = s.toLowerCase().replace(/[^a-z0-9]/g, '');\n"
                "    return s === s.split('').reverse().join('');\n"
                "};\n"
            ),
            "java": (
                "class Solution {\n"
                "    public boolean isPalindrome(String s) {\n"
                '        String filtered = s.toLowerCase().replaceAll("[^a-z0-9]", "");\n'
                "        return filtered.equals(new StringBuilder(filtered).reverse().toString());\n"
                "    }\n"
                "}\n"
            ),
            "cpp": (
                "class Solution {\n"
                "public:\n"
                "    bool isPalindrome(string s) {\n"
                "        string filtered;\n"
                "        for (char c : s) {\n"
                "            if (isalnum(c)) filtered += tolower(c);\n"
                "        }\n"
                "        return filtered == string(filtered.rbegin(), filtered.rend());\n"
                "    }\n"
                "};\n"
            ),
        },
    },
    {
        "id": 3,
        "title": "Maximum Subarray",
        "description": (
            "Given an integer array nums, find the contiguous subarray (containing "
            "at least one number) which has the largest sum and return its sum."
        ),
        "difficulty": "Medium",
        "tags": ["Array", "Divide and Conquer", "Dynamic Programming"],
        "function_name": "maxSubArray",
        "test_cases": [
            {
                "id": 1,
                "input": [{"name": "nums", "value": [-2, 1, -3, 4, -1, 2, 1, -5, 4]}],
                "expected_output": 6,
                "explanation": "The subarray [4,-1,2,1] has the largest sum 6.",
            },
            {
                "id": 2,
                "input": [{"name": "nums", "value": [1]}],
                "expected_output": 1,
            },
            {
                "id": 3,
                "input": [{"name": "nums", "value": [5, 4, -1, 7, 8]}],
                "expected_output": 23,
            },
        ],
        "boilerplate_code": {
            "python": "def maxSubArray(nums):\n    # Your code here\n    ",
            "javascript": "var maxSubArray = function(nums) {\n    // Your code here\n    \n};",
            "java": (
                "class Solution {\n"
                "    public int maxSubArray(int[] nums) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "}"
            ),
            "cpp": (
                "class Solution {\n"
                "public:\n"
                "    int maxSubArray(vector<int>& nums) {\n"
                "        // Your code here\n"
                "        \n"
                "    }\n"
                "};"
            ),
        },
    },
]

SEED_TESTS = [
    {
        "id": 1,
        "title": "Data Structures Weekly Quiz",
        "description": "Weekly assessment on data structures concepts",
        "type": "MCQ",
        "duration_minutes": 45,
        "questions": [
            {
                "kind": "mcq",
                "id": 1,
                "text": "Which data structure follows LIFO principle?",
                "options": ["Queue", "Stack", "Linked List", "Array"],
                "correct_answer_id": 1,
            },
            {
                "kind": "mcq",
                "id": 2,
                "text": "What is the time complexity of binary search?",
                "options": ["O(1)", "O(n)", "O(log n)", "O(n log n)"],
                "correct_answer_id": 2,
            },
        ],
    },
    {
        "id": 2,
        "title": "Algorithms Coding Challenge",
        "description": "Coding assessment on algorithm implementation",
        "type": "Coding",
        "duration_minutes": 90,
        "questions": [
            {
                "kind": "coding",
                "id": 1,
                "title": "Maximum subarray sum",
                "description": "Implement a function to find the maximum subarray sum",
                "function_name": "maxSubArray",
                "test_cases": [
                    {"input": [-2, 1, -3, 4, -1, 2, 1, -5, 4], "expected_output": 6},
                ],
            },
            {
                "kind": "coding",
                "id": 2,
                "title": "Reverse a list",
                "description": "Implement a function to reverse a linked list",
                "function_name": "reverseList",
                "test_cases": [
                    {"input": [1, 2, 3, 4, 5], "expected_output": [5, 4, 3, 2, 1]},
                ],
            },
        ],
    },
]


class ProblemCatalog:
    """
    Read-only registry of coding problems and tests.

    Stands in for the CRUD layer that owns these records; payloads are
    validated through the schemas when the catalog is built.
    """

    def __init__(
        self,
        problems: Optional[Iterable[dict]] = None,
        tests: Optional[Iterable[dict]] = None,
    ):
        self._problems: Dict[int, CodingProblem] = {}
        self._tests: Dict[int, Assessment] = {}
        for payload in SEED_PROBLEMS if problems is None else problems:
            problem = CodingProblem.model_validate(payload)
            self._problems[problem.id] = problem
        for payload in SEED_TESTS if tests is None else tests:
            test = Assessment.model_validate(payload)
            self._tests[test.id] = test
        catalog_logger.info(
            f"Catalog loaded: {len(self._problems)} problems, {len(self._tests)} tests"
        )

    def get_problem(self, problem_id: int) -> CodingProblem:
        problem = self._problems.get(problem_id)
        if not problem:
            catalog_logger.warning(f"Problem not found: ID {problem_id}")
            raise ResourceNotFoundException(detail="Problem not found")
        return problem

    def list_problems(
        self, difficulty: Optional[str] = None, tags: Optional[List[str]] = None
    ) -> List[CodingProblem]:
        problems = list(self._problems.values())
        if difficulty:
            problems = [
                p for p in problems if p.difficulty.lower() == difficulty.lower()
            ]
        if tags:
            wanted = {tag.lower() for tag in tags}
            problems = [
                p for p in problems if wanted & {tag.lower() for tag in p.tags}
            ]
        return problems

    def get_test(self, test_id: int) -> Assessment:
        test = self._tests.get(test_id)
        if not test:
            catalog_logger.warning(f"Test not found: ID {test_id}")
            raise ResourceNotFoundException(detail="Test not found")
        return test

    def list_tests(self) -> List[Assessment]:
        return list(self._tests.values())
