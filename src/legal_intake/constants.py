"""Intake and analysis constants shared across the SDK.

These values are referenced by the flow controller, the extractor, the
orchestrator and the rate limiter.  Product-level heuristics (urgency label
scores, specialty mapping, default checklists) live in
``data/defaults.yaml`` instead, see :mod:`legal_intake.coalescer`.

Every constant can be overridden via environment variables so that
deployments can tune deadlines and quotas without code changes.
"""

import os

# --- Deadline budget (milliseconds) ---
# Wall-clock allowance for one end-to-end analysis request.
ANALYSIS_WINDOW_MS = int(os.getenv("ANALYSIS_WINDOW_MS", "8000"))
# Once remaining time drops to this value, no new provider call is started.
BUDGET_GUARD_MS = int(os.getenv("BUDGET_GUARD_MS", "1000"))

# Minimum remaining time required before each provider call is attempted.
AUDIT_CALL_BUDGET_MS = int(os.getenv("AUDIT_CALL_BUDGET_MS", "2500"))
LOOKUP_CALL_BUDGET_MS = int(os.getenv("LOOKUP_CALL_BUDGET_MS", "1500"))
EXTRACTION_PASS_BUDGET_MS = int(os.getenv("EXTRACTION_PASS_BUDGET_MS", "1000"))
ADVISOR_CALL_BUDGET_MS = int(os.getenv("ADVISOR_CALL_BUDGET_MS", "1500"))

# Per-provider client-side timeout ceilings.
AUDIT_PROVIDER_TIMEOUT_MS = int(os.getenv("AUDIT_PROVIDER_TIMEOUT_MS", "7000"))
LOOKUP_PROVIDER_TIMEOUT_MS = int(os.getenv("LOOKUP_PROVIDER_TIMEOUT_MS", "4000"))
EXTRACTION_PROVIDER_TIMEOUT_MS = int(os.getenv("EXTRACTION_PROVIDER_TIMEOUT_MS", "1000"))
ADVISOR_PROVIDER_TIMEOUT_MS = int(os.getenv("ADVISOR_PROVIDER_TIMEOUT_MS", "4000"))

# --- Caller input minimums ---
# Direct analysis requests must describe the problem in at least this many chars.
MIN_PROBLEM_LENGTH = int(os.getenv("MIN_PROBLEM_LENGTH", "50"))
# Finalizing an intake session requires a situation answer at least this long.
MIN_SITUATION_LENGTH = int(os.getenv("MIN_SITUATION_LENGTH", "10"))

# --- Enrichment limits ---
MAX_DIRECTORY_ENTRIES = int(os.getenv("MAX_DIRECTORY_ENTRIES", "3"))
# Upper bound on follow-up rounds in the advisor validate/repair loop.
ADVISOR_MAX_ITERATIONS = int(os.getenv("ADVISOR_MAX_ITERATIONS", "3"))
# Answers are serialised into the audit prompt up to this many characters.
MAX_PROMPT_ANSWERS_CHARS = int(os.getenv("MAX_PROMPT_ANSWERS_CHARS", "4000"))

# --- Rate limiting ---
RATE_LIMIT_WINDOW_S = int(os.getenv("RATE_LIMIT_WINDOW_S", "60"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
# Redis key TTL; must exceed the window so trimming stays meaningful.
RATE_LIMIT_KEY_TTL_S = int(os.getenv("RATE_LIMIT_KEY_TTL_S", "120"))
# Ceiling on one shared counter store round trip before falling back to memory.
RATE_LIMIT_STORE_TIMEOUT_MS = int(os.getenv("RATE_LIMIT_STORE_TIMEOUT_MS", "250"))
# The in-memory store drops idle caller keys every this many hits.
RATE_LIMIT_SWEEP_EVERY = int(os.getenv("RATE_LIMIT_SWEEP_EVERY", "256"))

# Question ids with a special role in the flow.
SITUATION_QID = "situation"
CATEGORY_QID = "category"
URGENCY_QID = "urgency"
LOCATION_QID = "city"
