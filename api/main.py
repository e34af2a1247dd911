from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core import db
from core.errors import ResponseError
from core.log import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # One pool per process; services get it wrapped in a Database handle.
    pool = await db.create_pool()
    app.state.db = db.Database(pool)
    try:
        yield
    finally:
        await pool.close()


async def response_error_handler(_: Request, exc: ResponseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(*, lifespan=lifespan) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.add_exception_handler(ResponseError, response_error_handler)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
