from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ecotrip.api import get_map_service
from ecotrip.llm.gemini_backend import MapFeature
from ecotrip.models.domain import MapLocation
from ecotrip.models.schemas import MapLocationSchema, MapPlanInput, MapRouteSchema
from ecotrip.services.map_service import MapPlannerService

router = APIRouter()


def _ndjson(features: Iterator[MapFeature]) -> Iterator[str]:
    for feature in features:
        if isinstance(feature, MapLocation):
            schema = MapLocationSchema.from_domain(feature)
        else:
            schema = MapRouteSchema.from_domain(feature)
        yield schema.model_dump_json() + "\n"


@router.post("/plan")
def plan_map(
    payload: MapPlanInput,
    service: MapPlannerService = Depends(get_map_service),
) -> StreamingResponse:
    features = service.stream_features(payload.prompt, planner_mode=payload.planner_mode)
    return StreamingResponse(_ndjson(features), media_type="application/x-ndjson")
