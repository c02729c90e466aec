from enum import Enum


class Language(str, Enum):
    """Languages the sandbox can compile and run."""
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    CPP = "cpp"


class SubmissionStatus(str, Enum):
    """Submission lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ExitStatus(str, Enum):
    """How one sandboxed run ended."""
    NORMAL = "normal"
    TIMEOUT = "timeout"
    RUNTIME_ERROR = "runtime_error"
    COMPILE_ERROR = "compile_error"


class AssessmentType(str, Enum):
    MCQ = "MCQ"
    CODING = "Coding"
    MIXED = "Mixed"
