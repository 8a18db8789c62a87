"""Terminal front end: styles and the interactive picker."""
