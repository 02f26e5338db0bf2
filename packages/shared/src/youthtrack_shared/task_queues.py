"""Task queue name constants.

Each worker polls exactly one queue. Workflows that need a member created or a
code reissued dispatch to PROVISIONING_QUEUE; the worker runner starts the
provisioning component listening on the same name.
"""

# Privileged member management: needs the service role key
PROVISIONING_QUEUE = "provisioning-queue"
