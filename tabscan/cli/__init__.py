"""Command-line interface for tabscan.

Usage:
    tabscan extract <image> [<image> ...] [--lat LAT --lon LON] [--local-only]
    tabscan parse-lines <file|->
    tabscan endpoints [--set URL]
    tabscan serve [--host] [--port]
"""
