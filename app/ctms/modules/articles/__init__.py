"""
Articles module.

One Article per Topic, tracking the produced content through
assigned -> submitted -> published, with revision as a reset side channel.
Status changes are driven by who sets which link (see workflow.py).
"""
