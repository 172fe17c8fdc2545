"""Earth Engine client, session store and tool backends."""
