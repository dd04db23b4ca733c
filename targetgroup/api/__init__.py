"""Target group provisioner REST API."""
