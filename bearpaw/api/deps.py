"""FastAPI dependencies for the cabin API.

The wired AppComponents live on app.state; handlers pull what they need
through Depends() so tests can swap in a memory-backed set.
"""

from fastapi import Request

from bearpaw.projections import ChartService, ProjectionAggregator
from bearpaw.repositories import RecordRepositories


async def get_repositories(request: Request) -> RecordRepositories:
    return request.app.state.components.repositories


async def get_aggregator(request: Request) -> ProjectionAggregator:
    return request.app.state.components.aggregator


async def get_charts(request: Request) -> ChartService:
    return request.app.state.components.charts
