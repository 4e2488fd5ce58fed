"""Listeners forwarding Discord gateway events to Flagkeeper components."""
