"""Bundled schema sources (Std, Bitcoin). Loaded through `well_known`."""
