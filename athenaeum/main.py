"""
Main application entry point.
"""

from fastapi import FastAPI

from athenaeum import __version__
from athenaeum.api.v1.catalog_endpoints import router as catalog_router
from athenaeum.api.v1.classification_endpoints import router as classification_router
from athenaeum.api.v1.lending_endpoints import router as lending_router
from athenaeum.api.v1.library_endpoints import router as library_router
from athenaeum.api.v1.settings_endpoints import router as settings_router

app = FastAPI(
    title="Athenaeum API",
    description="Catalogue a personal library and keep track of who borrowed what.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include API routers
app.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])
app.include_router(classification_router, prefix="/api/v1", tags=["classification"])
app.include_router(lending_router, prefix="/api/v1", tags=["lending"])
app.include_router(library_router, prefix="/api/v1", tags=["library"])
app.include_router(settings_router, prefix="/api/v1", tags=["settings"])

@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Athenaeum API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("athenaeum.main:app", host="0.0.0.0", port=8000, reload=True)
