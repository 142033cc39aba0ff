"""FastAPI routes exposing chain detection to the admin panel."""

from datetime import datetime
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from chaindetect.errors import NotFoundError, StorageError, ValidationError
from chaindetect.service import ChainDetectionService

log = structlog.get_logger()


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None
    address: str | None = None
    city_id: int | None = None
    neighborhood_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    chain_id: int | None = None
    created_at: datetime | None = None


class ChainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    website: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CandidateClusterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    suggested_name: str
    normalized_name: str
    locations: list[RestaurantResponse]
    location_count: int
    confidence: int
    cities: list[int]
    average_similarity: float


class DetectionSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    restaurants_analyzed: int
    average_locations_per_chain: float
    top_chain: CandidateClusterResponse | None = None


class DetectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_potential_chains: int
    chains: list[CandidateClusterResponse]
    summary: DetectionSummaryResponse


class CreateChainRequest(BaseModel):
    """Request body for turning an accepted suggestion into a chain."""

    name: str
    restaurant_ids: list[int]
    website: str | None = None
    description: str | None = None


class ChainAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chain: ChainResponse
    assigned_restaurants: list[RestaurantResponse]


class ChainSummaryResponse(ChainResponse):
    location_count: int
    cities: list[Any]


def create_app(service: ChainDetectionService) -> FastAPI:
    """Create the FastAPI application around a configured service."""
    app = FastAPI(title="Chain Detection Admin API")

    @app.get("/api/chains/potential")
    def find_potential_chains(
        similarity_threshold: float | None = Query(None, ge=0.0, le=1.0),
        min_locations: int | None = Query(None, ge=2),
        max_results: int | None = Query(None, ge=1),
    ) -> DetectionResponse:
        """Scan unchained restaurants for likely chains."""
        try:
            result = service.find_potential_chains(
                similarity_threshold=similarity_threshold,
                min_locations=min_locations,
                max_results=max_results,
            )
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return DetectionResponse.model_validate(result)

    @app.post("/api/chains", status_code=201)
    def create_chain(req: CreateChainRequest) -> ChainAssignmentResponse:
        """Create a chain from an accepted suggestion."""
        try:
            assignment = service.create_chain_from_suggestion(
                name=req.name,
                restaurant_ids=req.restaurant_ids,
                website=req.website,
                description=req.description,
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return ChainAssignmentResponse.model_validate(assignment)

    @app.delete("/api/restaurants/{restaurant_id}/chain")
    def remove_from_chain(restaurant_id: int) -> RestaurantResponse:
        """Detach a restaurant from its chain."""
        try:
            restaurant = service.remove_restaurant_from_chain(restaurant_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return RestaurantResponse.model_validate(restaurant)

    @app.get("/api/chains")
    def list_chains() -> list[ChainSummaryResponse]:
        """List existing chains with member counts and cities."""
        try:
            summaries = service.get_all_chains()
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return [
            ChainSummaryResponse(
                **ChainResponse.model_validate(s.chain).model_dump(),
                location_count=s.location_count,
                cities=s.cities,
            )
            for s in summaries
        ]

    log.info("chain_api_ready")
    return app
