from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import chains, health, providers, quotes
from .config import settings
from .logging_config import setup_logging
from .middleware.logging_middleware import RequestLoggingMiddleware

setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Swap Quote Comparison API",
    description="Cross-chain swap quotes from multiple providers, normalized per USD checkpoint",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(providers.router, tags=["Providers"])
app.include_router(chains.router, tags=["Chains"])
app.include_router(quotes.router, tags=["Quotes"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Swap Quote Comparison API",
        "version": "0.1.0",
        "description": "Cross-chain swap quotes from multiple providers, normalized per USD checkpoint",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
