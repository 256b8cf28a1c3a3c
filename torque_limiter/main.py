import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables (TORQUE_LIMITER_CONFIG) before state reads config
load_dotenv()

from torque_limiter.dependencies import get_state  # noqa: E402
from torque_limiter.routes import limiter, system  # noqa: E402

logging.basicConfig(
    level=os.getenv("TORQUE_LIMITER_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_state().initialize()
    yield
    get_state().shutdown()


app = FastAPI(title="Torque Limiter API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system.router)
app.include_router(limiter.router)
