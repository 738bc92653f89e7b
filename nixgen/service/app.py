"""FastAPI application entrypoint for nixgen service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..compiler import OutputMode, SchemaCompiler
from ..loader import model_from_dict
from ..models import SchemaError


class CompileRequest(BaseModel):
    model: Dict[str, Any]
    root: Optional[str] = None
    mode: OutputMode = OutputMode.FULL
    module_name: Optional[str] = None


class CompileResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: str


def _default_compiler() -> SchemaCompiler:
    return SchemaCompiler()


def create_app(
    compiler_factory: Callable[[], SchemaCompiler] = _default_compiler,
) -> FastAPI:
    """Create the FastAPI application exposing the schema compiler."""

    app = FastAPI(title="nixgen Service", version="0.1.0")

    async def get_compiler() -> SchemaCompiler:
        return compiler_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/compile", response_model=CompileResponse)
    async def compile_model(
        payload: CompileRequest,
        compiler: SchemaCompiler = Depends(get_compiler),
    ) -> CompileResponse:
        def _run_compile() -> str:
            graph = model_from_dict(payload.model, root=payload.root, source="request")
            return compiler.compile(graph, payload.mode, module_name=payload.module_name)

        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, _run_compile)
        return CompileResponse(text=text)

    @app.exception_handler(SchemaError)
    async def schema_error_handler(_: Any, exc: SchemaError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
