"""
drecipe - declarative recipes driving a resource store toward an intent.

Actions (assert, apply, label) share one retry discipline and one result
contract; recipes chain them in order.
"""

__version__ = "0.1.0"
