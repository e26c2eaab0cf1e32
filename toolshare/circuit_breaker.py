from pybreaker import CircuitBreaker

# Guards booking persistence: after 3 consecutive database failures, booking
# requests fail fast for 60 seconds instead of piling onto the database.
booking_circuit_breaker = CircuitBreaker(
    fail_max=3,
    reset_timeout=60,
    name="booking_persistence_breaker",
)
