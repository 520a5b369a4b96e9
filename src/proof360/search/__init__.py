from proof360.search.elasticsearch import (
    DispatchQuery,
    DispatchRecord,
    ElasticsearchClient,
    build_dispatch_query,
    extract_dispatch_id,
)

__all__ = [
    "DispatchQuery",
    "DispatchRecord",
    "ElasticsearchClient",
    "build_dispatch_query",
    "extract_dispatch_id",
]
