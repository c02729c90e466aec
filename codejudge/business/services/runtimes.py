import os
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from codejudge.config import Config
from codejudge.data.schemas.enums import Language
from codejudge.errors import UnsupportedLanguageError

SUPPORTED_LANGUAGES: Tuple[str, ...] = tuple(language.value for language in Language)


class LanguageRuntime(BaseModel):
    """
    Compile/run recipe for one language.

    Templates are argument vectors; each token may carry the placeholders
    ``{source}``, ``{artifact}``, ``{entry_class}``, ``{workdir}`` and
    ``{memory_mb}``. Nothing is ever passed through a shell.
    """

    model_config = ConfigDict(frozen=True)

    language: Language
    extension: str
    source_stem: str = "solution"
    entry_class: Optional[str] = None
    compile_template: Optional[Tuple[str, ...]] = None
    run_template: Tuple[str, ...]
    # JVM and V8 reserve far more address space than they use; their heap is
    # capped through runtime flags instead of RLIMIT_AS.
    limits_address_space: bool = True
    # RLIMIT_NPROC counts threads too, so it only suits runtimes that stay
    # single-threaded.
    limits_processes: bool = False

    @property
    def compiled(self) -> bool:
        return self.compile_template is not None

    def source_name(self) -> str:
        return f"{self.source_stem}.{self.extension}"

    def build_commands(
        self,
        source: str,
        workdir: str,
        memory_mb: int,
        entry_class: Optional[str] = None,
    ) -> Tuple[Optional[List[str]], List[str]]:
        """Return the (compile argv or None, run argv) pair for one invocation."""
        values = {
            "source": source,
            "artifact": os.path.join(workdir, self.source_stem),
            "entry_class": entry_class or self.entry_class or self.source_stem,
            "workdir": workdir,
            "memory_mb": str(memory_mb),
        }
        compile_argv = None
        if self.compile_template is not None:
            compile_argv = [token.format(**values) for token in self.compile_template]
        run_argv = [token.format(**values) for token in self.run_template]
        return compile_argv, run_argv


def _build_runtimes() -> Dict[Language, LanguageRuntime]:
    return {
        Language.PYTHON: LanguageRuntime(
            language=Language.PYTHON,
            extension="py",
            run_template=(Config.PYTHON_BIN, "-B", "{source}"),
            limits_processes=True,
        ),
        Language.JAVASCRIPT: LanguageRuntime(
            language=Language.JAVASCRIPT,
            extension="js",
            run_template=(
                Config.NODE_BIN,
                "--max-old-space-size={memory_mb}",
                "{source}",
            ),
            limits_address_space=False,
        ),
        Language.JAVA: LanguageRuntime(
            language=Language.JAVA,
            extension="java",
            source_stem="Solution",
            entry_class="Solution",
            compile_template=(
                Config.JAVAC_BIN,
                "-J-Xmx512m",
                "-encoding",
                "UTF-8",
                "-d",
                "{workdir}",
                "{source}",
            ),
            run_template=(
                Config.JAVA_BIN,
                "-Xmx{memory_mb}m",
                "-Xss64m",
                "-cp",
                "{workdir}",
                "{entry_class}",
            ),
            limits_address_space=False,
        ),
        Language.CPP: LanguageRuntime(
            language=Language.CPP,
            extension="cpp",
            compile_template=(
                Config.CXX_BIN,
                "-O2",
                "-std=c++17",
                "-o",
                "{artifact}",
                "{source}",
            ),
            run_template=("{artifact}",),
            limits_processes=True,
        ),
    }


RUNTIMES: Dict[Language, LanguageRuntime] = _build_runtimes()


def is_supported(language: Union[str, Language]) -> bool:
    value = language.value if isinstance(language, Language) else str(language)
    return value.lower() in SUPPORTED_LANGUAGES


def get_runtime(language: Union[str, Language]) -> LanguageRuntime:
    """
    Look up the runtime for a language.

    Raises:
        UnsupportedLanguageError: the language is not in the fixed set
    """
    if isinstance(language, Language):
        return RUNTIMES[language]
    try:
        return RUNTIMES[Language(str(language).lower())]
    except ValueError:
        raise UnsupportedLanguageError(str(language)) from None
