"""
General-purpose helpers not related to the client itself
(neither to the resources nor to the transport nor to the structs).

These are things that should better be in the standard library
or in the dependencies.

As a rule of thumb, helpers MUST be abstracted from the client
to such an extent that they could be extracted as reusable libraries.
If they implement concepts of Attio's API, they are not "helpers"
(consider making them structs, clients, or resources).
"""
