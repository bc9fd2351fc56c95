from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    database_schema: Optional[str] = Field(
        default=None,
        alias="databaseSchema",
        description="Annotated schema text; the live database schema is used when omitted",
    )


class QueryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sql_query: Optional[str] = Field(default=None, alias="sqlQuery")
    explanation: Optional[str] = None
    success: bool
    error: Optional[str] = None


class QueryResponseWithData(QueryResponse):
    data: Optional[List[Dict[str, Any]]] = None
    row_count: int = Field(default=0, alias="rowCount")
    executed: bool = False


class ColumnInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str
    size: int = 0
    nullable: bool = True
    primary_key: bool = Field(default=False, alias="primaryKey")
    foreign_key_targets: Optional[List[str]] = Field(default=None, alias="foreignKeyTargets")


class DatabaseSchemaResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tables: Dict[str, List[ColumnInfo]]
    table_count: int = Field(alias="tableCount")
    schema_string: str = Field(alias="schemaString")
