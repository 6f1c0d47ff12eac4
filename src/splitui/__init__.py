"""SplitUI - natural-language intent dispatch for a split chat/task interface.

A chat message is sent to a language model together with a tool list
compiled from the capability registry. The model's tool call is normalized
into an activation record, which a per-session dispatch controller shows
as a summary, counts down, and promotes to the capability's full view.
"""

__version__ = "0.1.0"
