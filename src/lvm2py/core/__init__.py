"""
The `core` module holds the execution layer shared by every client: execution
contexts, container detection, argument composition and process execution.
"""
