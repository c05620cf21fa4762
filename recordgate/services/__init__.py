"""Services Layer — the record gateway and its supporting caches/registries.

Invariants:
    - Services issue queries only through the Driver protocol
    - Pure decisions (keys, binding, ordering plans) are delegated to core/

Design Decisions:
    - Imperative shell around the functional core: one mixin per algorithm
"""
