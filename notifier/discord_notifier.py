"""Discord delivery of urgent quest reminders over the REST API."""
import logging
from datetime import datetime
from typing import List

import requests

from processor.models import Quest

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Posts reminders to a named text channel in every guild the bot is in."""
    
    API_URL = "https://discord.com/api/v10"
    GUILD_PAGE_SIZE = 100
    GUILD_WARNING_THRESHOLD = 90
    
    def __init__(self, token: str, channel_name: str = 'pso2_bot', timeout: int = 30):
        """
        Initialize the Discord notifier.
        
        Args:
            token: Discord bot token
            channel_name: Name of the channel to post in within each guild
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.channel_name = channel_name
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bot {token}',
            'Content-Type': 'application/json'
        })
    
    def list_guilds(self) -> List[dict]:
        """
        Fetch the first page of guilds the bot belongs to.
        
        Returns:
            List of guild objects
            
        Raises:
            requests.RequestException: If the request fails
        """
        response = self.session.get(
            f"{self.API_URL}/users/@me/guilds",
            params={'limit': self.GUILD_PAGE_SIZE},
            timeout=self.timeout
        )
        response.raise_for_status()
        guilds = response.json()
        
        # TODO: page through guilds with the "after" parameter past the first 100
        if len(guilds) >= self.GUILD_WARNING_THRESHOLD:
            logger.warning(
                f"Number of guilds: {len(guilds)}, require pagination support "
                f"to support more than {self.GUILD_PAGE_SIZE} guilds"
            )
        return guilds
    
    def list_channels(self, guild_id: str) -> List[dict]:
        """
        Fetch the channels of a guild.
        
        Raises:
            requests.RequestException: If the request fails
        """
        response = self.session.get(
            f"{self.API_URL}/guilds/{guild_id}/channels",
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()
    
    def send_message(self, channel_id: str, content: str) -> None:
        """
        Post a text message to a channel.
        
        Raises:
            requests.RequestException: If the request fails
        """
        response = self.session.post(
            f"{self.API_URL}/channels/{channel_id}/messages",
            json={'content': content},
            timeout=self.timeout
        )
        response.raise_for_status()
    
    def format_message(self, quest: Quest, now: datetime) -> str:
        """Build the reminder text for a quest."""
        minutes = int((quest.start_time - now).total_seconds() // 60)
        return f"IN {minutes} MINUTES: {quest.name}"
    
    def notify(self, quest: Quest, now: datetime) -> int:
        """
        Send a reminder for a quest to every guild's reminder channel.
        
        Args:
            quest: Quest about to start
            now: Current time, used for the minutes countdown
            
        Returns:
            Number of guilds the reminder was delivered to
        """
        content = self.format_message(quest, now)
        
        try:
            guilds = self.list_guilds()
        except requests.RequestException as e:
            logger.error(f"Unable to fetch guilds: {e}")
            return 0
        
        delivered = 0
        for guild in guilds:
            guild_id = guild['id']
            logger.info(f"Processing guild: {guild_id}")
            
            try:
                channels = self.list_channels(guild_id)
            except requests.RequestException as e:
                logger.error(f"Unable to fetch channel list for guild {guild_id}: {e}")
                continue
            
            channel = next(
                (channel for channel in channels if channel.get('name') == self.channel_name),
                None
            )
            if channel is None:
                logger.debug(f"Guild {guild_id} has no '{self.channel_name}' channel")
                continue
            
            try:
                self.send_message(channel['id'], content)
            except requests.RequestException as e:
                logger.error(f"Unable to send message to guild {guild_id}: {e}")
                continue
            
            delivered += 1
            logger.info(f"Completed sending message to guild: {guild_id}")
        
        return delivered
