"""Payment confirmation and entitlement core of the lead magnet generator."""
