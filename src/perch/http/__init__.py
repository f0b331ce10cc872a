"""HTTP primitives: immutable requests, responses, and header negotiation."""
