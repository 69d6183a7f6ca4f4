"""
Host setup service — probe, resolve, reconcile.

Layered like an onion (data → domain → detection → resolver); the
engine executor applies the resulting plan and the generators emit the
devcontainer files.
"""
