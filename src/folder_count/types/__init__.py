"""Type definitions shared across folder-count components."""
