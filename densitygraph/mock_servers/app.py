"""FastAPI mock batch server for exercising the HTTP fetcher."""

import asyncio
import os
import random
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel

from densitygraph.fetcher.simulated import SimulatedBatchFetcher


class GridResponse(BaseModel):
    """Grid descriptor response model."""
    columns: int
    rows: int
    batch_count: int


class BatchResponse(BaseModel):
    """Batch response model."""
    index: int
    points: List[Dict[str, int]]


def create_mock_app(
    name: str = "batch-server",
    columns: int = 10,
    rows: int = 10,
    batch_count: int = 20,
    points_per_batch: int = 25,
    random_seed: Optional[int] = None,
    error_rate: float = 0.1,
    empty_rate: float = 0.0,
    extra_latency_ms: int = 0
) -> FastAPI:
    """
    Create a FastAPI batch server with configurable behavior.

    Args:
        name: Server name
        columns: Grid columns
        rows: Grid rows
        batch_count: Number of batch indices served
        points_per_batch: Upper bound of points per batch
        random_seed: Seed for deterministic data and errors
        error_rate: Probability of returning a 5xx error (0.0-1.0)
        empty_rate: Probability a batch is served as 204 No Content
        extra_latency_ms: Additional latency in milliseconds

    Returns:
        FastAPI application
    """
    app = FastAPI(title=f"Density Batch API - {name}")

    source = SimulatedBatchFetcher(
        columns=columns,
        rows=rows,
        batch_count=batch_count,
        points_per_batch=points_per_batch,
        empty_rate=empty_rate,
        random_seed=random_seed,
    )
    error_rng = random.Random(source.seed + 2)

    @app.get("/grid", response_model=GridResponse)
    async def get_grid():
        """Get the grid descriptor."""
        grid = source.get_grid_descriptor()
        return GridResponse(columns=grid.columns, rows=grid.rows, batch_count=grid.batch_count)

    @app.get("/batches/{index}", response_model=BatchResponse)
    async def get_batch(index: int):
        """Get one batch of data points."""
        if extra_latency_ms > 0:
            await asyncio.sleep(extra_latency_ms / 1000.0)

        if index < 0 or index >= batch_count:
            raise HTTPException(status_code=404, detail="Batch index out of range")

        # Simulate random errors
        if error_rng.random() < error_rate:
            error_code = error_rng.choice([500, 502, 503])
            raise HTTPException(status_code=error_code, detail="Simulated error")

        points = source.generate_batch(index)
        if not points:
            return Response(status_code=204)

        return BatchResponse(
            index=index,
            points=[{"x": p.x, "y": p.y} for p in points]
        )

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "server": name}

    return app


def create_app() -> FastAPI:
    """
    Factory function for uvicorn --factory.

    Reads grid and failure settings from the environment.
    """
    seed = os.getenv("RANDOM_SEED")
    return create_mock_app(
        name=os.getenv("SERVER_NAME", "batch-server"),
        columns=int(os.getenv("GRID_COLUMNS", 10)),
        rows=int(os.getenv("GRID_ROWS", 10)),
        batch_count=int(os.getenv("BATCH_COUNT", 20)),
        points_per_batch=int(os.getenv("POINTS_PER_BATCH", 25)),
        random_seed=int(seed) if seed is not None else 42,
        error_rate=float(os.getenv("ERROR_RATE", 0.1)),
        empty_rate=float(os.getenv("EMPTY_RATE", 0.0)),
        extra_latency_ms=int(os.getenv("EXTRA_LATENCY_MS", 0)),
    )


def run_server(host: str = "127.0.0.1", port: int = 8001) -> None:
    """Serve the environment-configured app with uvicorn."""
    uvicorn.run("densitygraph.mock_servers.app:create_app", host=host, port=port, factory=True)
