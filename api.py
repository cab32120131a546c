"""
FastAPI web application for the Website Analysis Engine
"""
from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from typing import Dict, Any, Optional
import logging
from datetime import datetime
import uvicorn

from config import config
from monitoring import metrics_collector, setup_logging
from site_analyzer import ReportAggregator
from utils import validate_url

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# Pydantic models for API requests
class AnalysisRequest(BaseModel):
    url: str

    @field_validator('url')
    @classmethod
    def url_must_be_valid(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('URL cannot be empty')
        if not validate_url(v):
            raise ValueError('URL is not valid')
        return v


# Response models
class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    metrics: Dict[str, Any]


# Initialize FastAPI app
app = FastAPI(
    title="Website Analysis API",
    description="On-page SEO and external security posture analysis for a single URL",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global aggregator instance
aggregator = None


@app.on_event("startup")
async def startup_event():
    """Initialize logging and the aggregator on startup"""
    global aggregator
    setup_logging(config.log_level)
    aggregator = ReportAggregator(config)
    logger.info("Website Analysis API started successfully")


def get_aggregator() -> ReportAggregator:
    """Dependency to get the aggregator instance"""
    global aggregator
    if aggregator is None:
        aggregator = ReportAggregator(config)
    return aggregator


# API Endpoints

@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint"""
    return {
        "message": "Website Analysis API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    snapshot = metrics_collector.snapshot()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        metrics=snapshot
    )


@app.post("/analyze", response_model=APIResponse)
async def analyze(
    request: AnalysisRequest,
    analyzer: ReportAggregator = Depends(get_aggregator)
):
    """Analyze a single URL"""
    logger.info(f"Analyzing URL: {request.url}")
    try:
        report = await analyzer.analyze(request.url)
    except Exception as e:
        logger.error(f"Error analyzing URL {request.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return APIResponse(
        success=report.success,
        message="Website analysis completed" if report.success else "Website analysis failed",
        data=report.to_dict(),
        timestamp=datetime.now()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "timestamp": datetime.now().isoformat()
        }
    )


if __name__ == "__main__":
    # Run the FastAPI app
    uvicorn.run(
        "api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
