"""
Progress System Configuration
Scoring constants, store limits and access policy
"""

import os

# Scoring policy (awardedXp = difficulty * multiplier, level = 1 + xp // step)
XP_PER_DIFFICULTY_LEVEL = int(os.getenv("XP_PER_DIFFICULTY_LEVEL", "10"))
XP_PER_LEVEL = int(os.getenv("XP_PER_LEVEL", "100"))

# Optimistic concurrency on the user document
COMPLETION_MAX_RETRIES = int(os.getenv("COMPLETION_MAX_RETRIES", "3"))

# Upper bound for any single MongoDB call made by the progress engine
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5.0"))

# Who may complete / read progress for a userId in the path:
#   self          - only the authenticated user themself
#   self_or_admin - the user or any admin
#   any           - any authenticated caller
COMPLETION_AUTH_POLICY = os.getenv("COMPLETION_AUTH_POLICY", "self_or_admin")
AUTH_POLICIES = {"self", "self_or_admin", "any"}

# Leaderboard
LEADERBOARD_DEFAULT_LIMIT = 10
LEADERBOARD_MAX_LIMIT = 100
