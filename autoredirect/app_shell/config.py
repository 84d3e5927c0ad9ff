import logging
import os
import sys
from pathlib import Path

from autoredirect.components.redirects import RedirectConfig
from autoredirect.components.slug_redirects import (
    ContentTypeDescriptor,
    ContentTypeRegistry,
    EngineConfig,
    ModelSchema,
    content_type_name,
)
from autoredirect.rules.models import ContentTypeRule, Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.
    Exits the process when they are not met.
    """
    ops = rules.ops

    # 1. Data dir must exist (or be creatable) and be writable
    if ops.data_dir_required:
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.critical("Data directory %s cannot be created: %s", data_dir, e)
            sys.exit(1)
        if not os.access(data_dir, os.W_OK):
            logger.critical("Data directory %s is not writable", data_dir)
            sys.exit(1)

    # 2. Check Required Env
    missing = [env_var for env_var in ops.required_env if env_var not in os.environ]
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    logger.info("Configuration validated.")


def engine_config_from_rules(rules: Rules) -> EngineConfig:
    return EngineConfig(
        auto_status_code=rules.redirects.auto_status_code,
        auto_priority=rules.redirects.auto_priority,
        internal_namespaces=tuple(rules.engine.internal_namespaces),
        tracker_max_entries=rules.engine.tracker_max_entries,
        slug_attribute=rules.engine.slug_attribute,
        slug_attribute_type=rules.engine.slug_attribute_type,
    )


def redirect_config_from_rules(rules: Rules) -> RedirectConfig:
    r = rules.redirects
    return RedirectConfig(
        status_code=r.auto_status_code,
        priority=r.auto_priority,
        allowed_status_codes=tuple(r.allowed_status_codes),
        require_internal_targets=r.require_internal_targets,
        max_chain_length=r.max_chain_length,
        prevent_loops=r.prevent_loops,
    )


def descriptor_from_rule(rule: ContentTypeRule) -> ContentTypeDescriptor:
    name = content_type_name(rule.uid)
    return ContentTypeDescriptor(
        uid=rule.uid,
        name=name,
        display_name=rule.display_name or name.capitalize(),
        plural_name=rule.plural_name if rule.plural_name is not None else f"{name}s",
        tracks_redirects=rule.tracks_redirects,
    )


def build_registry(rules: Rules) -> ContentTypeRegistry:
    """
    Registry pre-populated with the configured content types.
    Raises ContentTypeConfigError for a type that cannot be mapped to a path.
    """
    config = engine_config_from_rules(rules)
    registry = ContentTypeRegistry(config)
    for rule in rules.content_types:
        registry.register(descriptor_from_rule(rule))
    return registry


def content_schemas(rules: Rules) -> dict[str, ModelSchema]:
    """Model schemas the bundled content store reports in its lifecycle events."""
    engine = rules.engine
    schemas: dict[str, ModelSchema] = {}
    for rule in rules.content_types:
        descriptor = descriptor_from_rule(rule)
        attributes = (
            {engine.slug_attribute: {"type": engine.slug_attribute_type}}
            if rule.tracks_redirects
            else {}
        )
        schemas[rule.uid] = ModelSchema(
            uid=rule.uid,
            attributes=attributes,
            info={
                "displayName": descriptor.display_name,
                "pluralName": descriptor.plural_name,
            },
        )
    return schemas
