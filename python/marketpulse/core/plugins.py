import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from importlib import import_module
from typing import Any, Dict, Optional

from loguru import logger

from marketpulse.core.types import PredictionResult, Predictor

_OBJECT_CACHE: Dict[str, Any] = {}


class PluginError(RuntimeError):
    """Raised when a ``module:attr`` reference cannot be resolved."""


def resolve_object(spec: str) -> Any:
    """Import ``package.module:attr`` and return the attribute.

    Results are cached per reference so repeated lookups do not re-import.
    """
    if not spec or ":" not in spec:
        raise PluginError(f"Expected a 'module:attr' reference, got '{spec}'")

    cached = _OBJECT_CACHE.get(spec)
    if cached is not None:
        logger.debug("resolve_object: cache hit for '{}'", spec)
        return cached

    module_path, attr_name = spec.split(":", 1)
    try:
        logger.info("resolve_object: importing module '{}' for '{}'", module_path, attr_name)
        module = import_module(module_path)
        obj = getattr(module, attr_name)
    except (ImportError, AttributeError) as exc:
        raise PluginError(f"Failed to resolve '{spec}': {exc}") from exc

    _OBJECT_CACHE[spec] = obj
    return obj


class ThreadedPredictor:
    """Adapts a blocking ``predict(symbol)`` implementation to the async interface.

    Calls run on a small thread pool so a slow model does not stall the
    scheduler's event loop.
    """

    def __init__(self, inner: Any, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._inner = inner
        self._executor = executor

    async def predict(self, symbol: str) -> PredictionResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._inner.predict, symbol)


def _required_params(func: Any) -> list:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return []
    return [
        p
        for p in params
        if p.default is p.empty and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
    ]


def load_predictor(spec: str) -> Predictor:
    """Build the prediction engine referenced by ``spec``.

    Classes and zero-argument factories are called to obtain the instance.
    Synchronous ``predict`` methods are wrapped in :class:`ThreadedPredictor`.
    """
    obj = resolve_object(spec)
    if inspect.isclass(obj) or (callable(obj) and not hasattr(obj, "predict")):
        if not inspect.isclass(obj) and _required_params(obj):
            raise PluginError(
                f"'{spec}' must be a predictor class, instance or zero-argument factory"
            )
        try:
            obj = obj()
        except Exception as exc:
            raise PluginError(f"Failed to build predictor '{spec}': {exc}") from exc

    predict = getattr(obj, "predict", None)
    if predict is None or not callable(predict):
        raise PluginError(f"'{spec}' does not provide a predict(symbol) method")

    if inspect.iscoroutinefunction(predict):
        return obj

    logger.info("Predictor '{}' is synchronous; running it in a worker thread", spec)
    return ThreadedPredictor(obj)
