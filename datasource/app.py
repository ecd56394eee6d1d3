import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Union

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .client import ZabbixAPI
from .config import DatasourceSettings
from .errors import ZabbixAPIError, ZabbixAuthError, ZabbixTransportError
from .log import setup_logging

logger = logging.getLogger(__name__)

Id = Union[int, str]


class Item(BaseModel):
    itemid: Id
    value_type: Id


class TimeSeriesQuery(BaseModel):
    items: List[Item]
    time_from: int
    time_till: Optional[int] = None


async def call_zabbix(coro) -> Any:
    try:
        return await coro
    except ZabbixAuthError as exc:
        raise HTTPException(401, str(exc)) from exc
    except ZabbixTransportError as exc:
        raise HTTPException(502, f"Zabbix unreachable: {exc}") from exc
    except ZabbixAPIError as exc:
        raise HTTPException(502, {"message": exc.message, "code": exc.code, "data": exc.data}) from exc


def zabbix_of(request: Request) -> ZabbixAPI:
    return request.app.state.zabbix


def create_app(zabbix: Optional[ZabbixAPI] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        owned = None
        if zabbix is None:
            settings = DatasourceSettings.from_env()
            setup_logging(settings.log_level)
            owned = ZabbixAPI.from_settings(settings)
            app.state.zabbix = owned
            logger.info("datasource for %s ready", settings.url)
        else:
            app.state.zabbix = zabbix
        yield
        # Shutdown
        if owned is not None:
            await owned.close()

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/version")
    async def get_version(request: Request):
        return {"version": await call_zabbix(zabbix_of(request).get_version())}

    @app.get("/api/groups")
    async def get_groups(request: Request):
        return await call_zabbix(zabbix_of(request).get_groups())

    @app.get("/api/hosts")
    async def get_hosts(request: Request):
        return await call_zabbix(zabbix_of(request).get_hosts())

    @app.get("/api/applications")
    async def get_applications(request: Request):
        return await call_zabbix(zabbix_of(request).get_applications())

    @app.get("/api/items")
    async def get_items(request: Request):
        return await call_zabbix(zabbix_of(request).get_items())

    @app.post("/api/history")
    async def get_history(request: Request, query: TimeSeriesQuery):
        items = [i.model_dump() for i in query.items]
        return await call_zabbix(
            zabbix_of(request).get_history(items, query.time_from, query.time_till)
        )

    @app.post("/api/trends")
    async def get_trends(request: Request, query: TimeSeriesQuery):
        items = [i.model_dump() for i in query.items]
        return await call_zabbix(
            zabbix_of(request).get_trends(items, query.time_from, query.time_till)
        )

    @app.get("/api/services")
    async def get_services(request: Request, serviceids: Optional[List[str]] = Query(None)):
        return await call_zabbix(zabbix_of(request).get_it_service(serviceids))

    @app.get("/api/sla")
    async def get_sla(
        request: Request,
        time_from: int,
        time_to: int,
        serviceids: List[str] = Query(...),
    ):
        return await call_zabbix(zabbix_of(request).get_sla(serviceids, time_from, time_to))

    @app.get("/api/triggers")
    async def get_triggers(
        request: Request,
        limit: int = 100,
        sortfield: Optional[str] = None,
        groupids: Optional[List[str]] = Query(None),
        hostids: Optional[List[str]] = Query(None),
        applicationids: Optional[List[str]] = Query(None),
        name: Optional[str] = None,
    ):
        return await call_zabbix(
            zabbix_of(request).get_triggers(
                limit, sortfield, groupids, hostids, applicationids, name
            )
        )

    @app.get("/api/acknowledges")
    async def get_acknowledges(
        request: Request,
        time_from: int,
        triggerids: List[str] = Query(...),
    ):
        return await call_zabbix(zabbix_of(request).get_acknowledges(triggerids, time_from))

    return app


app = create_app()
