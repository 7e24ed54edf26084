import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import uvicorn

from explorer.controller import UIController, build_controller
from explorer.routers.page import router as page_router
from explorer.routers.sessions import router as sessions_router


# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler()  # Ensure logs go to stdout/stderr
    ]
)
# --------------------------


def create_app(controller: Optional[UIController] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Building the default controller needs GEMINI_API_KEY; tests inject their own
        app.state.controller = controller if controller is not None else build_controller()
        yield

    app = FastAPI(title="Map Explorer", lifespan=lifespan)
    app.include_router(page_router)
    app.include_router(sessions_router, prefix="/sessions")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
