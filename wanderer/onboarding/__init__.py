"""
Onboarding preference survey.

Responsibilities:
- Define the preference record embedded in each user profile.
- Drive the ten-step survey as an explicit step sequence with per-step
  validity and a forward/back transition function.
"""
