"""
Command-line interface entry points for wikigrapher.

Entry points:
- wikigrapher: genmap / gengraph subcommands
"""
