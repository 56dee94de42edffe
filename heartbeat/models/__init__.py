# Database models
from .user import User, AuthSession
from .profile import Profile, BloodType
from .donation import Donation, DonationStatus
from .emergency_request import EmergencyRequest, EmergencyStatus, UrgencyLevel
from .reward import Reward, RewardTransaction, TransactionType
from .chat import ChatRoom, ChatParticipant, ChatMessage
