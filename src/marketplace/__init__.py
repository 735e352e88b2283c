"""Construction-materials marketplace service"""
