"""
Device orchestration, station files and server wiring
"""
