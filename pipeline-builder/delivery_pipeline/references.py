from typing import Any, Callable, Dict, Mapping

from delivery_pipeline.models import DeferredValue, PipelineConfig


INDIRECTION_PREFIX = "ssm:"

Resolver = Callable[[str], Any]


def ssm_parameter(path: str) -> DeferredValue:
    return DeferredValue(parameterPath=path)


def is_indirect(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(INDIRECTION_PREFIX)


def resolve_references(values: Mapping[str, Any], resolve: Resolver = ssm_parameter) -> Dict[str, Any]:
    """
    Return a copy of ``values`` with indirect references replaced by deferred handles.

    Only top-level strings are inspected. Nested mappings and sequences are
    passed through as-is, even when they contain prefixed strings.
    """
    resolved: Dict[str, Any] = {}
    for key, value in values.items():
        if is_indirect(value):
            resolved[key] = resolve(value[len(INDIRECTION_PREFIX) :])
        else:
            resolved[key] = value
    return resolved


def resolve_config(config: PipelineConfig, resolve: Resolver = ssm_parameter) -> PipelineConfig:
    fields = {name: getattr(config, name) for name in type(config).model_fields}
    resolved = resolve_references(fields, resolve)
    updates = {name: value for name, value in resolved.items() if value is not fields[name]}
    return config.model_copy(update=updates)
