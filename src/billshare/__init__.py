"""Receipt parsing and bill splitting."""
