"""Query description: the fluent builder and its clause models."""

from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.expressions import JoinType, OrderDirection, QueryMethod, QueryOperator
from hazo_connect.schema.query import JoinClause, NestedSelect, OrderByItem, WhereCondition

__all__ = [
    "JoinClause",
    "JoinType",
    "NestedSelect",
    "OrderByItem",
    "OrderDirection",
    "QueryBuilder",
    "QueryMethod",
    "QueryOperator",
    "WhereCondition",
]
