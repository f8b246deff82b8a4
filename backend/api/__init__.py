"""HTTP surface of the notification backend."""
