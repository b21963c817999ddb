from __future__ import annotations

import asyncio
import datetime
import ipaddress
import logging
import os
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from netmapper.connector import DEFAULT_TIMEOUT, SocketAddress, SocketConnector
from netmapper.discovery import network_addresses
from netmapper.log_stream import LogStream
from netmapper.mapper import DEFAULT_MAX_WORKERS, NetworkMapper, ProbeResult
from netmapper.protocols import get_protocol

logger = logging.getLogger("netmapper")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Network Mapper API")
log_stream = LogStream()


def _cors_origins() -> list[str]:
    raw_origins = os.environ.get("FRONTEND_ORIGINS", "")
    if not raw_origins:
        return ["http://localhost:5173", "http://127.0.0.1:5173"]
    return [origin.strip() for origin in raw_origins.split(",") if origin.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PingRequest(BaseModel):
    host: str = Field(..., min_length=1, description="Device IP or hostname")
    port: int | None = Field(None, ge=1, le=65535, description="Defaults to the protocol's well-known port")
    protocol: Literal["adb", "ssh"] = "adb"


class PingResponse(BaseModel):
    host: str
    port: int
    protocol: str
    outcome: str
    supported: bool


class DiscoverRequest(BaseModel):
    subnet: str = Field(..., description="IPv4 subnet CIDR, e.g. 192.168.1.0/24")
    protocol: Literal["adb", "ssh"] = "adb"
    port: int | None = Field(None, ge=1, le=65535)


def _connect_timeout() -> float:
    raw = os.environ.get("NETMAPPER_CONNECT_TIMEOUT", "")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError("NETMAPPER_CONNECT_TIMEOUT must be a number") from exc


def _max_workers() -> int:
    raw = os.environ.get("NETMAPPER_MAX_WORKERS", "")
    if not raw:
        return DEFAULT_MAX_WORKERS
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError("NETMAPPER_MAX_WORKERS must be an integer") from exc


def build_mapper(protocol: str) -> NetworkMapper[SocketAddress]:
    entry = get_protocol(protocol)
    return NetworkMapper(
        SocketConnector(timeout=_connect_timeout()),
        entry.factory,
        max_workers=_max_workers(),
    )


def _mapper_or_500(protocol: str) -> NetworkMapper[SocketAddress]:
    try:
        return build_mapper(protocol)
    except ValueError as exc:
        logger.error("Scanner misconfigured: %s", exc)
        raise HTTPException(status_code=500, detail="Invalid scanner configuration") from exc


@app.post("/api/ping", response_model=PingResponse)
async def ping_device(payload: PingRequest) -> PingResponse:
    port = payload.port or get_protocol(payload.protocol).default_port
    mapper = _mapper_or_500(payload.protocol)

    result = await asyncio.to_thread(mapper.probe, (payload.host, port))
    await log_stream.publish(f"Ping {payload.host}:{port} via {payload.protocol}: {result.outcome.value}")

    return PingResponse(
        host=payload.host,
        port=port,
        protocol=payload.protocol,
        outcome=result.outcome.value,
        supported=result.supported,
    )


@app.post("/api/discover")
async def discover_devices(payload: DiscoverRequest) -> dict[str, Any]:
    port = payload.port or get_protocol(payload.protocol).default_port
    try:
        addresses = network_addresses(payload.subnet, port)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    mapper = _mapper_or_500(payload.protocol)

    await log_stream.publish(f"Discovery started for {payload.subnet} ({payload.protocol} on port {port})")
    loop = asyncio.get_running_loop()

    def report(result: ProbeResult[SocketAddress]) -> None:
        if result.supported:
            host, found_port = result.address
            log_stream.publish_threadsafe(loop, f"Found {payload.protocol} device at {host}:{found_port}")

    found = await asyncio.to_thread(mapper.scan, addresses, report)
    devices = sorted(found, key=lambda address: (ipaddress.ip_address(address[0]), address[1]))
    await log_stream.publish(f"Discovery finished for {payload.subnet}: {len(devices)} device(s)")

    return {
        "protocol": payload.protocol,
        "port": port,
        "scanned": len(addresses),
        "devices": [{"ip": host, "port": device_port} for host, device_port in devices],
    }


@app.websocket("/ws/logs")
async def websocket_logs(websocket: WebSocket) -> None:
    await websocket.accept()
    await websocket.send_json(
        {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "level": "info",
            "message": "Connected to live logs",
        }
    )
    try:
        async for event in log_stream.subscribe():
            await websocket.send_json(event)
    except WebSocketDisconnect:
        return


@app.get("/health")
async def health() -> dict[str, Any]:
    return {"status": "ok", "host": "0.0.0.0"}
