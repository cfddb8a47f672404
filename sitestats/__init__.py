# ==============================================================================
# Sitestats
# ==============================================================================
"""
Visitor analytics for published websites.

Records visitor sessions, page views, interactions, conversions and load
performance in Valkey, and aggregates them into dashboard summaries.

Entry points:
- sitestats.context.create_context: wire store, resolver and engine
- sitestats.core.session_manager.SessionManager: tracking (write side)
- sitestats.core.summary.AnalyticsEngine: summaries (read side)
- sitestats.instrumentation.PageInstrumentation: fire-and-forget page hooks
"""

__version__ = "0.1.0"
