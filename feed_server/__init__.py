"""
Learning Feed Recommender API server.

Use: uvicorn feed_server.app:app
"""
