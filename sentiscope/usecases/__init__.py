"""
sentiscope/usecases — orchestration over extractor, classifier and store.
"""
