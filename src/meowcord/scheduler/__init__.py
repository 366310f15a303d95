"""
Background schedulers.

- **deletion_scheduler.py**: Cancellable delayed deletion of messages
- **weekly_reset_scheduler.py**: Weekly report and tally reset
"""
