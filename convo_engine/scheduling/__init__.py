"""Business-hours-aware appointment slot negotiation."""
