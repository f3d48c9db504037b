"""HTTP route extraction from controller decorators."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .base import ExtractionContext, ExtractionResult, Extractor, FileJob, sort_key
from .fields import extract_block, extract_quoted
from ..logging import get_logger
from ..models import RouteEntry

logger = get_logger("extractors.routes")

DYNAMIC_ROUTE = "[dynamic]"

_ROUTE_DECORATOR = re.compile(r"@http\.route\s*(?=\()")
_AUTH = re.compile(r"\bauth\s*=\s*['\"]([^'\"]+)['\"]")
_TYPE = re.compile(r"\btype\s*=\s*['\"]([^'\"]+)['\"]")
_METHODS = re.compile(r"\bmethods\s*=\s*[\[(]")


def _methods(block: str) -> List[str]:
    match = _METHODS.search(block)
    if not match:
        return []
    inner = extract_block(block, match.end() - 1, len(block)) or ""
    return sorted({value.upper() for value in extract_quoted(inner) if value})


def parse_routes(
    content: str, module: str, relative_file: str, max_block_chars: int = 4000
) -> List[RouteEntry]:
    """Return one entry per declared path of every ``@http.route`` decorator."""
    routes: List[RouteEntry] = []
    for match in _ROUTE_DECORATOR.finditer(content):
        block = extract_block(content, match.end(), max_block_chars) or ""
        # Keyword values never start with "/", so only path literals survive.
        paths = [value for value in extract_quoted(block) if value.startswith("/")]
        auth_match = _AUTH.search(block)
        type_match = _TYPE.search(block)
        auth = auth_match.group(1) if auth_match else "user"
        route_type = type_match.group(1) if type_match else "http"
        methods = tuple(_methods(block))
        for path in paths or [DYNAMIC_ROUTE]:
            routes.append(
                RouteEntry(
                    module=module,
                    file=relative_file,
                    route=path,
                    auth=auth,
                    type=route_type,
                    methods=methods,
                )
            )
    return routes


def _route_to_dict(route: RouteEntry) -> Dict[str, Any]:
    return {
        "module": route.module,
        "file": route.file,
        "route": route.route,
        "auth": route.auth,
        "type": route.type,
        "methods": list(route.methods),
    }


def _route_key(route: RouteEntry) -> tuple:
    return sort_key(route.module) + (route.file, route.route)


@dataclass
class RouteMap(ExtractionResult):
    artifact = "route-map"
    scan_subdirectories = ("controllers",)
    assumptions = (
        "Routes are read from @http.route(...) decorators in controllers/.",
        "Quoted arguments starting with '/' are paths; computed paths are reported as [dynamic].",
        "auth defaults to 'user' and type to 'http' when not declared.",
    )

    routes: List[RouteEntry] = field(default_factory=list)
    public_limit: int = 400
    route_limit: int = 4000

    def sorted_routes(self) -> List[RouteEntry]:
        return sorted(self.routes, key=_route_key)

    def public_routes(self) -> List[RouteEntry]:
        return [route for route in self.sorted_routes() if route.is_public]

    def to_payload(self) -> Dict[str, Any]:
        public = self.public_routes()
        return {
            "route_count": len(self.routes),
            "public_route_count": len(public),
            "public_routes": [_route_to_dict(r) for r in public[: self.public_limit]],
            "routes": [_route_to_dict(r) for r in self.sorted_routes()[: self.route_limit]],
        }

    def metrics(self) -> Dict[str, int]:
        return {"routes": len(self.routes), "public_routes": len(self.public_routes())}

    def risks(self) -> List[str]:
        public = len(self.public_routes())
        if public:
            return [f"Validate security posture for {public} public routes."]
        return []


class RouteExtractor(Extractor):
    """Parses each module's controllers/ folder."""

    name = "routes"

    def extract(self, context: ExtractionContext) -> RouteMap:
        limits = context.limits
        jobs = self.collect_jobs(context, "controllers", ".py", limits.controller_files)

        def _parse(job: FileJob) -> List[RouteEntry]:
            content = self.read(context, job.path, limits.controller_chars)
            return parse_routes(content, job.module.name, job.relative, limits.route_block_chars)

        routes: List[RouteEntry] = []
        for parsed in self.map_jobs(context, jobs, _parse):
            routes.extend(parsed)

        logger.info("Detected %d routes in %d controller files", len(routes), len(jobs))
        return RouteMap(
            routes=routes,
            public_limit=limits.public_routes,
            route_limit=limits.routes,
        )


__all__ = ["DYNAMIC_ROUTE", "RouteExtractor", "RouteMap", "parse_routes"]
