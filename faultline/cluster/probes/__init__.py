from faultline.cluster.probes.bolt_handshake_probe import (
    BoltHandshakeProbe as BoltHandshakeProbe,
)
from faultline.cluster.probes.connectivity_probe import (
    ConnectivityProbe as ConnectivityProbe,
)
