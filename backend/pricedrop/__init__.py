"""PriceDrop backend: multi-source price monitoring with price-drop alerts."""
