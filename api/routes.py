from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from adapters.base import DatabaseAdapter
from adapters.factory import get_adapter
from agent.executor import execute_safe_query
from agent.orchestrator import QueryOrchestrator
from api.schemas import (
    DatabaseSchemaResponse,
    QueryRequest,
    QueryResponse,
    QueryResponseWithData,
)
from schema.formatter import format_schema
from schema.introspector.service import IntrospectionError, introspect_schema
from utils.config import get_settings

router = APIRouter(prefix="/api/query")

EMPTY_TEXT_ERROR = "Text cannot be empty"


def get_query_adapter() -> DatabaseAdapter:
    return get_adapter(settings=get_settings())


def get_orchestrator(adapter: DatabaseAdapter = Depends(get_query_adapter)) -> QueryOrchestrator:
    return QueryOrchestrator(settings=get_settings(), adapter=adapter)


def _is_blank(text) -> bool:
    return text is None or not text.strip()


def _bad_request(body: QueryResponse) -> JSONResponse:
    return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))


@router.post("/convert", response_model=QueryResponse)
def convert(request: QueryRequest, orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    if _is_blank(request.text):
        return _bad_request(QueryResponse(success=False, error=EMPTY_TEXT_ERROR))

    generated = orchestrator.convert(request.text, request.database_schema)
    return QueryResponse(
        sql_query=generated.sql_text,
        explanation=generated.explanation,
        success=generated.success,
        error=generated.error,
    )


@router.post("/convert-and-execute", response_model=QueryResponseWithData)
def convert_and_execute(
    request: QueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
    adapter: DatabaseAdapter = Depends(get_query_adapter),
):
    if _is_blank(request.text):
        return _bad_request(QueryResponseWithData(success=False, error=EMPTY_TEXT_ERROR))

    generated = orchestrator.convert(request.text, request.database_schema)
    if not generated.success:
        return QueryResponseWithData(
            sql_query=generated.sql_text,
            explanation=generated.explanation,
            success=False,
            error=generated.error,
        )

    result = execute_safe_query(generated.sql_text, adapter=adapter, timeout_ms=get_settings().query_timeout_ms)
    return QueryResponseWithData(
        sql_query=generated.sql_text,
        explanation=generated.explanation,
        success=result.success,
        error=result.error,
        data=result.rows,
        row_count=result.row_count,
        executed=True,
    )


@router.get("/schema", response_model=DatabaseSchemaResponse)
def database_schema(adapter: DatabaseAdapter = Depends(get_query_adapter)):
    try:
        schema = introspect_schema(adapter)
    except IntrospectionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return DatabaseSchemaResponse(
        tables=schema.to_dict(),
        table_count=len(schema),
        schema_string=format_schema(schema),
    )


@router.get("/health", response_class=PlainTextResponse)
def health() -> str:
    return "QueryMind AI is running!"
