"""
Marshalling of test case inputs into runnable programs.

Two modes:

* stdin program: the submission is a complete program. It receives the test
  case input on stdin as JSON (named parameters become a JSON object keyed
  by parameter name) and prints its answer.
* function: the submission defines ``function_name`` (free function or a
  ``Solution`` method). A per-language driver is appended that calls it with
  the positional arguments and prints the return value as JSON. Python and
  JavaScript drivers read the arguments from stdin; Java and C++ drivers get
  them embedded as typed literals.
"""

import json
import math
import re
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel

from codejudge.data.schemas.enums import Language
from codejudge.data.schemas.testcase import NamedParameter
from codejudge.errors import UnsupportedInputError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

JAVA_PRELUDE = "import java.util.*;\n"

JAVA_PACKAGE = re.compile(r"\A(?:\s|//[^\n]*\n|/\*.*?\*/)*package\s+[\w.]+\s*;", re.S)

CPP_PRELUDE = """#include <bits/stdc++.h>
using namespace std;
"""

PYTHON_DRIVER = """

if __name__ == "__main__":
    import json as _cj_json
    import sys as _cj_sys

    def _cj_default(value):
        if isinstance(value, (set, frozenset, tuple)):
            return list(value)
        return str(value)

    _cj_args = _cj_json.loads(_cj_sys.stdin.read() or "[]")
    _cj_target = globals().get("{function_name}")
    if _cj_target is None and "Solution" in globals():
        _cj_target = getattr(Solution(), "{function_name}")
    print(_cj_json.dumps(_cj_target(*_cj_args), default=_cj_default))
"""

JAVASCRIPT_DRIVER = """

;(function () {
  const __cjArgs = JSON.parse(require("fs").readFileSync(0, "utf8") || "[]");
  let __cjTarget = typeof {function_name} === "function" ? {function_name} : null;
  if (__cjTarget === null && typeof Solution === "function") {
    const __cjSolution = new Solution();
    __cjTarget = __cjSolution.{function_name}.bind(__cjSolution);
  }
  const __cjResult = __cjTarget(...__cjArgs);
  console.log(JSON.stringify(__cjResult === undefined ? null : __cjResult));
})();
"""

JAVA_DRIVER = """

class Main {
    public static void main(String[] args) throws Exception {
%(declarations)s
        Object result = new Solution().%(function_name)s(%(arguments)s);
        System.out.println(toJson(result));
    }

    static String quote(String s) {
        StringBuilder sb = new StringBuilder("\\"");
        for (int i = 0; i < s.length(); i++) {
            char c = s.charAt(i);
            if (c == '"' || c == '\\\\') {
                sb.append('\\\\').append(c);
            } else if (c < 0x20) {
                sb.append(String.format("\\\\u%%04x", (int) c));
            } else {
                sb.append(c);
            }
        }
        return sb.append('"').toString();
    }

    static String toJson(Object value) {
        if (value == null) return "null";
        if (value instanceof String) return quote((String) value);
        if (value instanceof Character) return quote(String.valueOf(value));
        if (value instanceof Double || value instanceof Float) {
            double d = ((Number) value).doubleValue();
            if (Double.isNaN(d) || Double.isInfinite(d)) return "null";
            return String.valueOf(d);
        }
        if (value instanceof Boolean || value instanceof Number) return String.valueOf(value);
        if (value.getClass().isArray()) {
            StringBuilder sb = new StringBuilder("[");
            int n = java.lang.reflect.Array.getLength(value);
            for (int i = 0; i < n; i++) {
                if (i > 0) sb.append(',');
                sb.append(toJson(java.lang.reflect.Array.get(value, i)));
            }
            return sb.append(']').toString();
        }
        if (value instanceof Map) {
            StringBuilder sb = new StringBuilder("{");
            boolean first = true;
            for (Object entry : ((Map<?, ?>) value).entrySet()) {
                Map.Entry<?, ?> e = (Map.Entry<?, ?>) entry;
                if (!first) sb.append(',');
                first = false;
                sb.append(quote(String.valueOf(e.getKey()))).append(':').append(toJson(e.getValue()));
            }
            return sb.append('}').toString();
        }
        if (value instanceof Iterable) {
            StringBuilder sb = new StringBuilder("[");
            boolean first = true;
            for (Object item : (Iterable<?>) value) {
                if (!first) sb.append(',');
                first = false;
                sb.append(toJson(item));
            }
            return sb.append(']').toString();
        }
        return quote(value.toString());
    }
}
"""

CPP_DRIVER = """

namespace codejudge_json {
inline void write(std::ostream& out, const std::string& s);
inline void write(std::ostream& out, const char* s);
inline void write(std::ostream& out, char c);
inline void write(std::ostream& out, bool b);
template <typename T>
typename std::enable_if<std::is_integral<T>::value>::type write(std::ostream& out, T v);
template <typename T>
typename std::enable_if<std::is_floating_point<T>::value>::type write(std::ostream& out, T v);
template <typename T> void write(std::ostream& out, const std::vector<T>& v);
template <typename A, typename B> void write(std::ostream& out, const std::pair<A, B>& p);
template <typename K, typename V> void write(std::ostream& out, const std::map<K, V>& m);
template <typename K, typename V> void write(std::ostream& out, const std::unordered_map<K, V>& m);

inline void write(std::ostream& out, const std::string& s) {
    out << '"';
    for (unsigned char c : s) {
        if (c == '"' || c == '\\\\') {
            out << '\\\\' << c;
        } else if (c < 0x20) {
            char buf[8];
            std::snprintf(buf, sizeof(buf), "\\\\u%%04x", c);
            out << buf;
        } else {
            out << c;
        }
    }
    out << '"';
}
inline void write(std::ostream& out, const char* s) { write(out, std::string(s)); }
inline void write(std::ostream& out, char c) { write(out, std::string(1, c)); }
inline void write(std::ostream& out, bool b) { out << (b ? "true" : "false"); }
template <typename T>
typename std::enable_if<std::is_integral<T>::value>::type write(std::ostream& out, T v) { out << v; }
template <typename T>
typename std::enable_if<std::is_floating_point<T>::value>::type write(std::ostream& out, T v) {
    if (!std::isfinite(v)) { out << "null"; return; }
    std::ostringstream s;
    s << std::setprecision(17) << v;
    out << s.str();
}
template <typename T> void write(std::ostream& out, const std::vector<T>& v) {
    out << '[';
    for (size_t i = 0; i < v.size(); ++i) {
        if (i) out << ',';
        write(out, v[i]);
    }
    out << ']';
}
template <typename A, typename B> void write(std::ostream& out, const std::pair<A, B>& p) {
    out << '[';
    write(out, p.first);
    out << ',';
    write(out, p.second);
    out << ']';
}
template <typename K> std::string key_string(const K& k) {
    std::ostringstream s;
    s << k;
    return s.str();
}
template <typename M> void write_mapping(std::ostream& out, const M& m) {
    out << '{';
    bool first = true;
    for (const auto& entry : m) {
        if (!first) out << ',';
        first = false;
        write(out, key_string(entry.first));
        out << ':';
        write(out, entry.second);
    }
    out << '}';
}
template <typename K, typename V> void write(std::ostream& out, const std::map<K, V>& m) { write_mapping(out, m); }
template <typename K, typename V> void write(std::ostream& out, const std::unordered_map<K, V>& m) { write_mapping(out, m); }
}  // namespace codejudge_json

int main() {
%(declarations)s
    Solution solution;
    auto result = solution.%(function_name)s(%(arguments)s);
    codejudge_json::write(std::cout, result);
    std::cout << std::endl;
    return 0;
}
"""


class PreparedProgram(BaseModel):
    """Source, stdin payload and entry point for one test case run."""

    source: str
    stdin: Optional[str] = None
    entry_class: Optional[str] = None


def _is_named_parameter_list(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    for item in value:
        if isinstance(item, NamedParameter):
            continue
        if not isinstance(item, dict) or set(item.keys()) - {"name", "value"}:
            return False
        if "name" not in item:
            return False
    return True


def _named_parameters(value: List[Any]) -> List[NamedParameter]:
    return [
        item if isinstance(item, NamedParameter) else NamedParameter.model_validate(item)
        for item in value
    ]


def to_arguments(test_input: Any) -> List[Any]:
    """
    Convert a test case input into positional arguments.

    A named-parameter list yields its values in order; ``None`` yields no
    arguments; anything else is a single argument.
    """
    if test_input is None:
        return []
    if _is_named_parameter_list(test_input):
        return [param.value for param in _named_parameters(test_input)]
    return [test_input]


def encode_stdin(test_input: Any) -> str:
    """JSON payload for stdin programs."""
    if _is_named_parameter_list(test_input):
        test_input = {param.name: param.value for param in _named_parameters(test_input)}
    return json.dumps(test_input)


def _scalar_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int" if INT32_MIN <= value <= INT32_MAX else "long"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    raise UnsupportedInputError(
        f"Cannot encode value of type {type(value).__name__} as a typed literal"
    )


_NUMERIC_RANK = {"int": 0, "long": 1, "double": 2}


def _merge_kinds(left: Optional[str], right: Optional[str]) -> Optional[str]:
    if left is None:
        return right
    if right is None or left == right:
        return left
    if left in _NUMERIC_RANK and right in _NUMERIC_RANK:
        return max(left, right, key=_NUMERIC_RANK.__getitem__)
    raise UnsupportedInputError(f"Array mixes {left} and {right} elements")


def infer_shape(value: Any) -> Tuple[Optional[str], int]:
    """Return (element kind, array depth); kind is None for empty arrays."""
    if isinstance(value, (list, tuple)):
        kind, depth = None, None
        for item in value:
            if item is None:
                raise UnsupportedInputError("Arrays with null elements cannot be typed")
            item_kind, item_depth = infer_shape(item)
            if depth is not None and item_depth != depth:
                raise UnsupportedInputError("Array nesting depth is not uniform")
            depth = item_depth
            kind = _merge_kinds(kind, item_kind)
        return kind, (depth or 0) + 1
    return _scalar_kind(value), 0


def _string_literal(value: str) -> str:
    escapes = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
    out = []
    for char in value:
        if char in escapes:
            out.append(escapes[char])
        elif ord(char) < 0x20:
            out.append("\\%03o" % ord(char))
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def _float_literal(value: float, language: Language) -> str:
    if math.isnan(value):
        return "Double.NaN" if language == Language.JAVA else "std::nan(\"\")"
    if math.isinf(value):
        if language == Language.JAVA:
            return "Double.POSITIVE_INFINITY" if value > 0 else "Double.NEGATIVE_INFINITY"
        infinity = "std::numeric_limits<double>::infinity()"
        return infinity if value > 0 else f"-{infinity}"
    return repr(value)


def _scalar_literal(value: Any, kind: str, language: Language) -> str:
    if kind == "bool":
        return "true" if value else "false"
    if kind == "int":
        return str(int(value))
    if kind == "long":
        return f"{int(value)}L" if language == Language.JAVA else f"{int(value)}LL"
    if kind == "double":
        return _float_literal(float(value), language)
    return _string_literal(value)


def _initializer(value: Any, kind: str, language: Language) -> str:
    if isinstance(value, (list, tuple)):
        return "{" + ", ".join(_initializer(item, kind, language) for item in value) + "}"
    return _scalar_literal(value, kind, language)


_JAVA_TYPES = {"bool": "boolean", "int": "int", "long": "long", "double": "double", "string": "String"}
_CPP_TYPES = {"bool": "bool", "int": "int", "long": "long long", "double": "double", "string": "std::string"}


def typed_declaration(name: str, value: Any, language: Language) -> str:
    """Declare ``name`` initialized to ``value`` as a Java or C++ local."""
    kind, depth = infer_shape(value)
    kind = kind or "int"
    if language == Language.JAVA:
        base = _JAVA_TYPES[kind]
        if depth == 0:
            return f"{base} {name} = {_scalar_literal(value, kind, language)};"
        type_name = base + "[]" * depth
        return f"{type_name} {name} = new {type_name}{_initializer(value, kind, language)};"

    type_name = _CPP_TYPES[kind]
    for _ in range(depth):
        type_name = f"std::vector<{type_name}>"
    if depth == 0:
        return f"{type_name} {name} = {_scalar_literal(value, kind, language)};"
    return f"{type_name} {name} = {_initializer(value, kind, language)};"


def _embedded_call(arguments: List[Any], language: Language) -> Tuple[str, str]:
    declarations, names = [], []
    null_literal = "null" if language == Language.JAVA else "nullptr"
    indent = " " * 8 if language == Language.JAVA else " " * 4
    for index, value in enumerate(arguments):
        if value is None:
            names.append(null_literal)
            continue
        name = f"arg{index}"
        declarations.append(indent + typed_declaration(name, value, language))
        names.append(name)
    return "\n".join(declarations), ", ".join(names)


def with_java_prelude(code: str) -> str:
    """
    Prepend the standard imports to a Java source.

    A leading ``package`` declaration is dropped: classes are compiled into
    and launched from the default package.
    """
    match = JAVA_PACKAGE.match(code)
    if match:
        code = code[match.end():].lstrip()
    return JAVA_PRELUDE + code


def prepare_program(
    code: str,
    language: Union[str, Language],
    test_input: Any,
    function_name: Optional[str] = None,
) -> PreparedProgram:
    """
    Build the source and stdin payload that run ``code`` on one test input.

    Raises:
        UnsupportedInputError: the input cannot be expressed for the language,
            or ``function_name`` is not a valid identifier
    """
    language = Language(language)

    if language == Language.JAVA:
        code = with_java_prelude(code)
    elif language == Language.CPP:
        code = CPP_PRELUDE + code

    if not function_name:
        return PreparedProgram(source=code, stdin=encode_stdin(test_input))

    if not function_name.isidentifier():
        raise UnsupportedInputError(f"Invalid function name: {function_name!r}")

    arguments = to_arguments(test_input)

    if language == Language.PYTHON:
        return PreparedProgram(
            source=code + PYTHON_DRIVER.replace("{function_name}", function_name),
            stdin=json.dumps(arguments),
        )

    if language == Language.JAVASCRIPT:
        return PreparedProgram(
            source=code + JAVASCRIPT_DRIVER.replace("{function_name}", function_name),
            stdin=json.dumps(arguments),
        )

    declarations, call_arguments = _embedded_call(arguments, language)
    driver = JAVA_DRIVER if language == Language.JAVA else CPP_DRIVER
    source = code + driver % {
        "declarations": declarations,
        "function_name": function_name,
        "arguments": call_arguments,
    }
    return PreparedProgram(
        source=source,
        stdin="",
        entry_class="Main" if language == Language.JAVA else None,
    )
