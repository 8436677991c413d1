"""Live sales leaderboard fed by Zettle and PayPal webhooks."""
