"""
Core application engine for orchestrating a run.

The `DownloadManager` resolves an item's URLs, plans where each file goes and
hands the plan to the `TransferInvoker`. Listing modes stop after resolution.
"""
