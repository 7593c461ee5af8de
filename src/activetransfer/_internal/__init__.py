"""Request plumbing shared by ActiveTransferClient. Not part of the public API."""
