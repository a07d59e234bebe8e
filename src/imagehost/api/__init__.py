"""HTTP routers for the image host."""
