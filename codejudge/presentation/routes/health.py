import shutil

from fastapi import APIRouter

from codejudge.business.services.runtimes import RUNTIMES

health_router = APIRouter(tags=["health"])


@health_router.get("/health", summary="Health check")
async def health():
    """Reports which language toolchains are installed on this host."""
    toolchains = {}
    for language, runtime in RUNTIMES.items():
        binaries = list(runtime.compile_template or ())[:1] + list(runtime.run_template)[:1]
        toolchains[language.value] = all(
            "{" in binary or shutil.which(binary) is not None for binary in binaries
        )
    return {"status": "ok", "toolchains": toolchains}
