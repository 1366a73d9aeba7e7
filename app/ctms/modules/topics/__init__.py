"""
Topics module: planned pieces of content within a Project.
Creating a Topic also creates its Article.
"""
