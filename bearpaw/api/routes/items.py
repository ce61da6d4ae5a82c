"""CRUD routes, one router per collection.

Every collection exposes the same five endpoints under /api/<kind>:

    GET    /api/<kind>          list, newest first
    GET    /api/<kind>/{id}     one record, 404 if missing
    POST   /api/<kind>          create, returns the stored record
    PATCH  /api/<kind>/{id}     merge update, 204
    DELETE /api/<kind>/{id}     delete, 204

Request and response schemas come from the collection's models, so the
OpenAPI docs show the real shape of each collection.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from bearpaw.api.deps import get_repositories
from bearpaw.audit import get_logger
from bearpaw.models.items import COLLECTION_MODELS, Collection
from bearpaw.repositories import RecordRepositories

logger = get_logger("bearpaw.api.routes")


def build_collection_router(collection: Collection) -> APIRouter:
    """Create the CRUD router for one collection."""
    collection = Collection(collection)
    record_model, fields_model = COLLECTION_MODELS[collection]
    kind = collection.value

    router = APIRouter(prefix=f"/api/{kind}", tags=[kind])

    @router.get("", response_model=list[record_model])
    async def list_items(
        repositories: RecordRepositories = Depends(get_repositories),
    ):
        return await repositories.for_collection(collection).list()

    @router.get("/{record_id}", response_model=record_model)
    async def get_item(
        record_id: str,
        repositories: RecordRepositories = Depends(get_repositories),
    ):
        record = await repositories.for_collection(collection).get(record_id)
        if record is None:
            raise HTTPException(
                status_code=404,
                detail=f"{kind} record not found: {record_id}",
            )
        return record

    @router.post("", response_model=record_model)
    async def create_item(
        payload: fields_model,
        repositories: RecordRepositories = Depends(get_repositories),
    ):
        record = await repositories.for_collection(collection).create(payload)
        logger.debug("record_created", kind=kind, record_id=record.id)
        return record

    @router.patch("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def update_item(
        record_id: str,
        changes: dict[str, Any] = Body(...),
        repositories: RecordRepositories = Depends(get_repositories),
    ) -> Response:
        await repositories.for_collection(collection).update(record_id, changes)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(
        record_id: str,
        repositories: RecordRepositories = Depends(get_repositories),
    ) -> Response:
        await repositories.for_collection(collection).delete(record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
