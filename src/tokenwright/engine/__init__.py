"""
Engine - the flows built on top of the chain layer.

- deploy:    deploy MyToken and record it
- funding:   top test accounts up to a gas floor
- scenario:  the fixed mint / transfer / burn interaction script
- scanner:   chunked historical log retrieval
- events:    log decoding and dispatch
- reconcile: rebuild balances from the event history
"""
