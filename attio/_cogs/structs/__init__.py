"""
All the structures to represent Attio's wire data in memory and back.

Grouped by the concern: identifiers, attribute values, change tracking,
diffs, capabilities of the resource types.

All the functions are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
