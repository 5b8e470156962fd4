"""local-service.

Bridge process that mirrors the services declared in a Nomad job file into
the local Consul agent:
 - resolves the address this host should be advertised under
 - builds one Consul service registration (plus HTTP checks) per service
 - registers everything, then waits for a termination signal
 - deregisters everything it registered before exiting

Registrations live exactly as long as the process does.
"""
