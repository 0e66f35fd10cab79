"""Database schema for Creative Insights.

Every statement is idempotent; the schema is applied on each initialize.
"""

# Base schema - creates core tables and indexes
SCHEMA = """
CREATE TABLE IF NOT EXISTS insights_daily (
    entity_id TEXT NOT NULL,
    level TEXT NOT NULL,
    date TEXT NOT NULL,
    entity_name TEXT,
    campaign_id TEXT,
    adset_id TEXT,
    account_id TEXT,
    impressions INTEGER DEFAULT 0,
    clicks INTEGER DEFAULT 0,
    spend REAL DEFAULT 0,
    reach INTEGER DEFAULT 0,
    ctr REAL DEFAULT 0,
    cpc REAL DEFAULT 0,
    cpm REAL DEFAULT 0,
    actions_json TEXT,
    action_values_json TEXT,
    PRIMARY KEY (entity_id, level, date)
);

CREATE TABLE IF NOT EXISTS ad_creatives (
    ad_id TEXT PRIMARY KEY,
    account_id TEXT,
    creative_id TEXT,
    creative_type TEXT DEFAULT 'unknown',
    image_url TEXT,
    image_url_hd TEXT,
    thumbnail_url TEXT,
    thumbnail_quality TEXT DEFAULT 'unknown',
    cached_image_url TEXT,
    cached_thumbnail_url TEXT,
    video_url TEXT,
    cached_video_url TEXT,
    video_id TEXT,
    preview_url TEXT,
    title TEXT,
    body TEXT,
    description TEXT,
    call_to_action TEXT,
    link_url TEXT,
    is_complete INTEGER DEFAULT 0,
    fetch_status TEXT DEFAULT 'pending',
    fetch_attempts INTEGER DEFAULT 0,
    error_message TEXT,
    extra_data TEXT,
    fetched_at TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS entities_cache (
    entity_id TEXT PRIMARY KEY,
    entity_type TEXT NOT NULL,
    name TEXT,
    effective_status TEXT,
    campaign_id TEXT,
    adset_id TEXT,
    account_id TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS ad_ai_analyses (
    ad_id TEXT PRIMARY KEY,
    overall_score REAL,
    analyzed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS creative_tags (
    ad_id TEXT NOT NULL,
    tag TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (ad_id, tag)
);

CREATE TABLE IF NOT EXISTS creative_comparisons (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    ad_ids TEXT NOT NULL,
    platform TEXT DEFAULT 'meta',
    date_from TEXT,
    date_to TEXT,
    filters_snapshot TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_insights_level_date ON insights_daily(level, date);
CREATE INDEX IF NOT EXISTS idx_insights_campaign ON insights_daily(campaign_id);
CREATE INDEX IF NOT EXISTS idx_insights_adset ON insights_daily(adset_id);
CREATE INDEX IF NOT EXISTS idx_entities_type ON entities_cache(entity_type);
CREATE INDEX IF NOT EXISTS idx_entities_campaign ON entities_cache(campaign_id);
CREATE INDEX IF NOT EXISTS idx_tags_tag ON creative_tags(tag);
"""
