"""Starlette ASGI application exposing the evolution analysis and commit journal."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..exceptions import (
    CommitAnalysisNotFoundError,
    CommitNotFoundError,
    ContextWindowExceededError,
    JournalError,
    NoHistoryError,
    OracleError,
    PromptNotFoundError,
    StorageError,
)
from ..logging_config import get_logger

if TYPE_CHECKING:
    from ..service import EvolutionService

logger = get_logger(__name__)

# Most specific first; ContextWindowExceededError is an OracleError.
_STATUS_BY_ERROR: list[tuple[type[JournalError], int]] = [
    (NoHistoryError, 404),
    (CommitNotFoundError, 404),
    (PromptNotFoundError, 404),
    (CommitAnalysisNotFoundError, 404),
    (ContextWindowExceededError, 413),
    (OracleError, 502),
    (StorageError, 500),
]


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message, "details": {}}, status_code=400)


def _check_commit_params(params: dict[str, Any]) -> Optional[JSONResponse]:
    """400 response when the commit-analysis parameters are unusable, else None."""
    for name in ("repo", "commit"):
        value = params.get(name)
        if not value or not isinstance(value, str):
            return _bad_request(f"Missing '{name}'")
    for name in ("model_id", "prompt_id"):
        value = params.get(name)
        if value is not None and not isinstance(value, str):
            return _bad_request(f"'{name}' must be a string")
    return None


async def _commit_request(request: Request) -> tuple[dict[str, Any], Optional[JSONResponse]]:
    """Read ``repo``, ``commit``, ``model_id`` and ``prompt_id`` from a JSON body."""
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        return {}, _bad_request("Request body must be JSON")
    if not isinstance(payload, dict):
        return {}, _bad_request("Request body must be a JSON object")
    return payload, _check_commit_params(payload)


def error_response(exc: JournalError) -> JSONResponse:
    """Map a domain error to its HTTP status and JSON body."""
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break
    body: dict[str, Any] = {"success": False, **exc.to_json()}
    return JSONResponse(body, status_code=status)


def create_app(service: EvolutionService) -> Starlette:
    """Build the Starlette application wired to *service*."""

    async def get_evolution(request: Request) -> JSONResponse:
        """Last persisted analysis plus fresh file evolutions."""
        repo = request.query_params.get("repo")
        if not repo:
            return _bad_request("Missing 'repo' query parameter")
        try:
            view = await run_in_threadpool(service.analysis, repo)
        except JournalError as e:
            logger.warning("Evolution read failed for %s: %s", repo, e)
            return error_response(e)
        return JSONResponse({"success": True, **view.to_dict()})

    async def post_evolution(request: Request) -> JSONResponse:
        """Run the full analysis and return the composed result."""
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            return _bad_request("Request body must be JSON")
        if not isinstance(payload, dict):
            return _bad_request("Request body must be a JSON object")

        repo = payload.get("repo")
        if not repo or not isinstance(repo, str):
            return _bad_request("Missing 'repo'")
        selected = payload.get("selected_files")
        if selected is not None and (
            not isinstance(selected, list) or not all(isinstance(p, str) for p in selected)
        ):
            return _bad_request("'selected_files' must be a list of paths")
        force_refresh = payload.get("force_refresh", False)
        if not isinstance(force_refresh, bool):
            return _bad_request("'force_refresh' must be true or false")

        try:
            result = await run_in_threadpool(
                service.analyze,
                repo,
                selected_files=selected or None,
                force_refresh=force_refresh,
                model_id=payload.get("model_id") or None,
            )
        except JournalError as e:
            logger.error("Evolution analysis failed for %s: %s", repo, e)
            return error_response(e)
        return JSONResponse({"success": True, "result": result.to_dict()})

    async def get_commit_analysis(request: Request) -> JSONResponse:
        """Cached journal entry for one commit; never calls the model."""
        params = dict(request.query_params)
        error = _check_commit_params(params)
        if error is not None:
            return error
        try:
            analysis = await run_in_threadpool(
                service.commit_analysis,
                params["repo"],
                params["commit"],
                model_id=params.get("model_id") or None,
                prompt_id=params.get("prompt_id") or None,
            )
        except JournalError as e:
            return error_response(e)
        if analysis is None:
            return JSONResponse({"success": True, "was_cached": False, "result": None})
        return JSONResponse({"success": True, "was_cached": True, "result": analysis.to_dict()})

    async def post_commit_analysis(request: Request) -> JSONResponse:
        """Analyze one commit, reusing the cached entry unless ``reanalyze`` is set."""
        payload, error = await _commit_request(request)
        if error is not None:
            return error
        reanalyze = payload.get("reanalyze", False)
        if not isinstance(reanalyze, bool):
            return _bad_request("'reanalyze' must be true or false")
        try:
            outcome = await run_in_threadpool(
                service.analyze_commit,
                payload["repo"],
                payload["commit"],
                model_id=payload.get("model_id") or None,
                prompt_id=payload.get("prompt_id") or None,
                reanalyze=reanalyze,
            )
        except JournalError as e:
            logger.error("Commit analysis failed for %s: %s", payload["repo"], e)
            return error_response(e)
        return JSONResponse({"success": True, **outcome.to_dict()})

    async def delete_commit_analysis(request: Request) -> JSONResponse:
        """Drop a cached entry so the next POST asks the model again."""
        payload, error = await _commit_request(request)
        if error is not None:
            return error
        try:
            await run_in_threadpool(
                service.delete_commit_analysis,
                payload["repo"],
                payload["commit"],
                model_id=payload.get("model_id") or None,
                prompt_id=payload.get("prompt_id") or None,
            )
        except JournalError as e:
            return error_response(e)
        return JSONResponse({"success": True})

    async def get_analysis_total(request: Request) -> JSONResponse:
        """Token usage summed over every stored analysis."""
        try:
            totals = await run_in_threadpool(service.usage_totals)
        except JournalError as e:
            return error_response(e)
        return JSONResponse({"success": True, **totals.to_dict()})

    routes = [
        Route("/api/evolution", get_evolution, methods=["GET"]),
        Route("/api/evolution", post_evolution, methods=["POST"]),
        Route("/api/analyze-commit", get_commit_analysis, methods=["GET"]),
        Route("/api/analyze-commit", post_commit_analysis, methods=["POST"]),
        Route("/api/analyze-commit", delete_commit_analysis, methods=["DELETE"]),
        Route("/api/analysis-total", get_analysis_total, methods=["GET"]),
    ]

    return Starlette(routes=routes)
