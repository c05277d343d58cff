# Vulture whitelist for release-decision project
# This file contains false positives that should be ignored by vulture

# Pydantic model_config is used by the framework
_.model_config

# Pydantic validators are used by the framework
_.parse_title_articles
_.validate_adjustment
_.validate_confidence_range
_.validate_positive
_.validate_log_level
_.cls

# Pydantic settings customization is used by the framework
_.settings_customise_sources
_.get_field_value
_.prepare_field_value
_.env_settings

# Click commands are registered by their decorators
_.parse
_.formats
_.decide

# Library API used by callers embedding the engine
_.item_lock
_.refresh_status
_.classify_episode
_.evaluate_candidates
_.default_profiles

# Enum members and data class fields read through value lookups
_.INDEXER_FLAG
_.TORRENT
_.USENET
_.protocol
_.indexer_flags
_.indexer_id
_.published_at
