from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from coop_portal.routers import api_router
from coop_portal.settings import CORS_ORIGINS
from coop_portal.utils.logging import configure_logging

configure_logging()

app = FastAPI(title="Co-op Placement Portal")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include the API router
app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}
