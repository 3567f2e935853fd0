"""Point a robot head at pixels clicked on its camera feed."""
