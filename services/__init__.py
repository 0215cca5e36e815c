"""
Service layer

Small helpers around the tracker, no transition logic of their own:
- lottery_service: draw waiting entrants to invite
- participant_list_service: four-list view of an event
- notification_service: record messages in notification history
"""
