# fastapi_rest_query/dependencies.py

from fastapi import Depends

from .builder import build_query_descriptor
from .metadata import ModelMetadata
from .params import QueryParams


def RestParams():
    def wrapper(params: QueryParams = Depends()):
        return params.params
    return Depends(wrapper)


def RestQuery(metadata: ModelMetadata, paginate: bool = True):
    def wrapper(params: QueryParams = Depends()):
        return build_query_descriptor(metadata, params.params, paginate=paginate)
    return Depends(wrapper)
