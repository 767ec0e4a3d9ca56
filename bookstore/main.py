"""
FastAPI main application for the Bookstore API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from bookstore.auth import TokenClaims, TokenService, get_token_service, require_token
from bookstore.config import config
from bookstore.database import BookDatabaseService
from bookstore.errors import BookstoreError, InvalidDataFormat
from bookstore.models import (
    BookCreatedResponse, BookDetailResponse, BookListResponse, BookUpsertedResponse,
    ErrorResponse, HealthResponse, MessageResponse, TokenResponse
)
from bookstore.queries import ListQueryParams
from bookstore.store import MongoDBManager
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

FETCHED = "Successfully Fetched"
NO_DOCUMENTS = "There is no documents available"
DOCUMENT_FETCHED = "Document fetched successfully"
NO_DOCUMENT = "There is no document available"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
    )
    logger.info("Starting Bookstore API")

    manager = MongoDBManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection,
    )
    try:
        collection = await manager.connect()
    except Exception as e:
        logger.error("Failed to initialise database", error=str(e))
        await manager.disconnect()
        raise

    app.state.book_service = BookDatabaseService(collection)
    logger.info("Database connection established", collection=config.mongodb_collection)

    try:
        yield
    finally:
        # Shutdown
        logger.info("Shutting down Bookstore API")
        app.state.book_service = None
        await manager.disconnect()


def get_book_service(request: Request) -> BookDatabaseService:
    """Book service bound to the connection opened at startup."""
    service = getattr(request.app.state, "book_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available",
        )
    return service


# Create FastAPI application
app = FastAPI(
    title=config.api_title,
    description="""
    CRUD and full-text search over a single collection of books.

    ## Authentication

    Request a token from `/createAuthToken?role=<role>` and send it as the raw
    value of the Authorization header:

    ```
    Authorization: your_token_here
    ```

    Tokens are valid for 12 hours.
    """,
    version=config.api_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Exception handlers
@app.exception_handler(BookstoreError)
async def bookstore_exception_handler(request: Request, exc: BookstoreError):
    """Handle authentication and validation errors."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are reported like any other bad payload."""
    logger.warning("Request validation failed", path=request.url.path, errors=str(exc.errors()))
    error = InvalidDataFormat()
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    service = getattr(request.app.state, "book_service", None)
    db_status = "unavailable"
    if service is not None:
        health_info = await service.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=config.api_version,
        database_status=db_status,
    )


# Token endpoint (no authentication required)
@app.get("/createAuthToken", response_model=TokenResponse, tags=["Auth"])
async def create_auth_token(
    role: Optional[str] = None,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Issue a bearer token for ``role``.

    - **role**: Role claim embedded in the token
    """
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    token = tokens.issue(role)
    hours = tokens.expires_in_seconds // 3600
    return TokenResponse(
        token=token,
        message=f"Token generated Successfully. It is valid for {hours}h.",
    )


# Books endpoints
@app.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(
    offset: Optional[str] = None,
    limit: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Get books with sorting and pagination.

    - **offset**: Page number (starts from 1)
    - **limit**: Items per page (default 10)
    - **sort**: Sort field (title, authors, description, publicationYear)
    - **order**: 1 for ascending, -1 for descending
    """
    params = ListQueryParams(offset=offset, limit=limit, sort=sort, order=order)
    try:
        books = await service.list_books(params)
    except PyMongoError as e:
        logger.error("Failed to get books", error=str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    return JSONResponse(content={
        "message": FETCHED if books else NO_DOCUMENTS,
        "books": [book.to_json() for book in books],
    })


# Declared before /books/{book_id} so "search" is not taken as an id
@app.get("/books/search", response_model=BookListResponse, tags=["Books"])
async def search_books(
    query: Optional[str] = None,
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Full-text search over title, authors and description.

    - **query**: Search terms; an empty query matches nothing
    """
    try:
        books = await service.search_books(query)
    except PyMongoError as e:
        logger.error("Failed to search books", query=query, error=str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    return JSONResponse(content={
        "message": FETCHED if books else NO_DOCUMENTS,
        "books": [book.to_json() for book in books],
    })


@app.get("/books/{book_id}", response_model=BookDetailResponse, tags=["Books"])
async def get_book(
    book_id: str,
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Get a single book by ID.

    - **book_id**: Integer book identifier
    """
    try:
        book = await service.get_book(book_id)
    except PyMongoError as e:
        logger.error("Failed to get book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )

    return JSONResponse(content={
        "message": DOCUMENT_FETCHED if book else NO_DOCUMENT,
        "books": book.to_json() if book else None,
    })


@app.post("/books", response_model=BookCreatedResponse, tags=["Books"])
async def create_book(
    payload: Dict[str, Any] = Body(...),
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Insert a single book.

    - **title**: Required
    - **authors**: Required, non-empty list of strings
    - **description**: Optional
    - **publicationYear**: Optional, between 1800 and the current year
    """
    try:
        book = await service.create_book(payload)
    except PyMongoError as e:
        logger.error("Failed to insert book", error=str(e))
        raise InvalidDataFormat()

    return JSONResponse(content={"message": "Successfully inserted", "book": book.to_json()})


@app.put("/books/{book_id}", response_model=BookUpsertedResponse, tags=["Books"])
async def upsert_book(
    book_id: str,
    payload: Dict[str, Any] = Body(...),
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Replace the book with the given ID, creating it when it does not exist.

    - **book_id**: Integer book identifier
    """
    try:
        result = await service.upsert_book(book_id, payload)
    except PyMongoError as e:
        logger.error("Failed to update book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    return JSONResponse(content={
        "message": "Document upserted successfully",
        "books": result.to_json(),
    })


@app.delete("/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def delete_book(
    book_id: str,
    claims: TokenClaims = Depends(require_token),
    service: BookDatabaseService = Depends(get_book_service),
):
    """
    Delete a book by ID.

    - **book_id**: Integer book identifier
    """
    try:
        deleted = await service.delete_book(book_id)
    except PyMongoError as e:
        logger.error("Failed to delete book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    return JSONResponse(content={"message": "Successfully deleted."})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bookstore.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
    )
