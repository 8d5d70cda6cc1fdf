"""Upstream broadcast-data providers.

FM4APIProvider polls the FM4 audio API's ``/live`` and ``/broadcasts``
resources and hands the raw JSON to the extractor.
"""
